"""Per-tab marker: the tab's last top-level navigation came from webmail."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

SESSION_TTL_SECONDS = 15.0


@dataclass(frozen=True)
class TrackingSession:
    tab_id: int
    expires_at: float


def is_valid_tab_id(tab_id: object) -> bool:
    # Hosts report -1 for requests that do not belong to a tab
    return isinstance(tab_id, int) and not isinstance(tab_id, bool) and tab_id >= 0


class SessionTracker:
    """Time-bounded markers keyed by tab id.

    Expired entries are dropped lazily by ``is_marked``; nothing sweeps in
    the background.
    """

    def __init__(self, ttl: float = SESSION_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._sessions: dict[int, TrackingSession] = {}

    def mark(self, tab_id: int) -> None:
        if not is_valid_tab_id(tab_id):
            return
        self._sessions[tab_id] = TrackingSession(tab_id=tab_id, expires_at=self._clock() + self.ttl)

    def is_marked(self, tab_id: int) -> bool:
        session = self._sessions.get(tab_id)
        if session is None:
            return False
        if self._clock() > session.expires_at:
            del self._sessions[tab_id]
            return False
        return True

    def consume(self, tab_id: int) -> None:
        self._sessions.pop(tab_id, None)

    def get(self, tab_id: int) -> TrackingSession | None:
        return self._sessions.get(tab_id)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

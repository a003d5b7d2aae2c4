"""Wiring between the host runtime and the gate / bulk cleaner."""

from __future__ import annotations

from typing import Any

import structlog

from mailscrub.bulk import BulkCleaner, CleanReport, Notifier, TabHost
from mailscrub.config import AppConfig
from mailscrub.flags import FlagStore
from mailscrub.gate import NavigationEvent, RequestGate
from mailscrub.sessions import SessionTracker
from mailscrub.statuses import MessageType


class Runtime:
    """One extension instance: a gate with its own session map and a cleaner."""

    def __init__(
        self,
        config: AppConfig,
        flag_store: FlagStore,
        tabs: TabHost,
        notifier: Notifier,
        log: structlog.stdlib.BoundLogger | None = None,
        clock=None,
    ) -> None:
        self.log = log or structlog.get_logger(__name__)
        settings = config.settings
        tracker_kwargs = {"clock": clock} if clock is not None else {}
        self.tracker = SessionTracker(ttl=settings.session_ttl_seconds, **tracker_kwargs)
        self.gate = RequestGate(
            self.tracker,
            flag_store,
            policy=config.policy.build(),
            max_hops=settings.max_unwrap_hops,
            flag_timeout=settings.flag_timeout_seconds,
            log=self.log,
        )
        self.cleaner = BulkCleaner(tabs, notifier, log=self.log)

    async def on_before_request(self, details: dict[str, Any]) -> dict[str, str] | None:
        return await self.gate.handle(NavigationEvent.model_validate(details))

    async def on_message(self, message: Any, window_id: int | None = None) -> CleanReport | None:
        if not isinstance(message, dict):
            return None
        if message.get("type") == MessageType.CLEAN_ALL_TABS:
            return await self.cleaner.clean_all(window_id)
        self.log.debug("runtime.unknown_message", message_type=message.get("type"))
        return None

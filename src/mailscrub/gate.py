"""Request gate: decide whether a top-level navigation gets redirected.

The decision runs in two phases. ``precheck`` is synchronous and holds the
only state mutation (the per-tab webmail marker). The flag read is the single
suspension point; ``submit`` wraps it in a task the host may cancel when the
navigation is abandoned.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog
from pydantic import BaseModel, ConfigDict, Field

from mailscrub.flags import FlagStore, read_enabled
from mailscrub.policy import DEFAULT_POLICY, DomainPolicy, is_webmail_url
from mailscrub.sessions import SessionTracker
from mailscrub.statuses import ResourceType
from mailscrub.unwrap import MAX_HOPS, unwrap
from mailscrub.urls import strip_query


class NavigationEvent(BaseModel):
    """A request notification as delivered by the host (camelCase keys accepted)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    url: str
    # A missing type is never treated as a top-level navigation
    resource_type: str = Field(default=ResourceType.OTHER, alias="type")
    tab_id: int = Field(default=-1, alias="tabId")
    initiator: str | None = None
    origin_url: str | None = Field(default=None, alias="originUrl")
    document_url: str | None = Field(default=None, alias="documentUrl")

    @property
    def initiator_url(self) -> str:
        return self.initiator or self.origin_url or self.document_url or ""


@dataclass(frozen=True)
class NoAction:
    def to_host(self) -> None:
        return None


@dataclass(frozen=True)
class Redirect:
    target_url: str

    def to_host(self) -> dict[str, str]:
        return {"redirectUrl": self.target_url}


Decision = NoAction | Redirect

NO_ACTION = NoAction()


class RequestGate:
    def __init__(
        self,
        tracker: SessionTracker,
        flag_store: FlagStore,
        *,
        policy: DomainPolicy = DEFAULT_POLICY,
        max_hops: int = MAX_HOPS,
        flag_timeout: float | None = None,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.tracker = tracker
        self.flag_store = flag_store
        self.policy = policy
        self.max_hops = max_hops
        self.flag_timeout = flag_timeout
        self.log = log or structlog.get_logger(__name__)

    def precheck(self, event: NavigationEvent) -> bool:
        """Synchronous phase. Returns True when the flag must be consulted."""
        if event.resource_type != ResourceType.MAIN_FRAME:
            return False
        if self.policy.must_skip_query_stripping(event.url):
            return False

        initiated_by_webmail = is_webmail_url(event.initiator_url)
        marked_from_prior_hop = self.tracker.is_marked(event.tab_id)

        if initiated_by_webmail:
            self.tracker.mark(event.tab_id)
        elif marked_from_prior_hop:
            # One follow-up hop only, whatever the outcome
            self.tracker.consume(event.tab_id)

        return initiated_by_webmail or marked_from_prior_hop

    def rewrite(self, url: str) -> Decision:
        """Pure phase: unwrap and strip *url*, guarding against self-redirects."""
        if self.policy.must_preserve_query_across_hop(url):
            self.log.debug("gate.preserve_query", url=url)
            return NO_ACTION

        candidate = unwrap(url, max_hops=self.max_hops)
        cleaned = strip_query(candidate)
        if not cleaned or cleaned == url:
            return NO_ACTION
        return Redirect(cleaned)

    async def _resolve(self, event: NavigationEvent) -> Decision:
        try:
            enabled = await read_enabled(self.flag_store, self.log, timeout=self.flag_timeout)
        except TimeoutError:
            self.log.warning("gate.flag_timeout", url=event.url, timeout=self.flag_timeout)
            return NO_ACTION
        if not enabled:
            return NO_ACTION

        decision = self.rewrite(event.url)
        if isinstance(decision, Redirect):
            self.log.info("gate.redirect", tab_id=event.tab_id, source=event.url, target=decision.target_url)
        return decision

    async def decide(self, event: NavigationEvent) -> Decision:
        if not self.precheck(event):
            return NO_ACTION
        return await self._resolve(event)

    def submit(self, event: NavigationEvent) -> Decision | asyncio.Task[Decision]:
        """Decide locally when possible, otherwise return a cancellable task.

        Must be called from within a running event loop.
        """
        if not self.precheck(event):
            return NO_ACTION
        return asyncio.get_running_loop().create_task(self._resolve(event))

    async def handle(self, event: NavigationEvent | dict) -> dict[str, str] | None:
        """Host-facing entry point: returns ``{"redirectUrl": ...}`` or None."""
        if isinstance(event, dict):
            event = NavigationEvent.model_validate(event)
        decision = await self.decide(event)
        return decision.to_host()

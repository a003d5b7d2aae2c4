"""Bulk cleaner: strip query strings from every open document in a window."""

from __future__ import annotations

import asyncio
from typing import Protocol

import structlog
from pydantic import BaseModel

from mailscrub.errors import UpdateError
from mailscrub.urls import strip_query

RESULT_TITLE = "URL Cleaner Result"
ERROR_TITLE = "URL Cleaner Error"
ERROR_MESSAGE = "An unexpected error occurred while cleaning tabs. Check the console."


class Tab(BaseModel):
    id: int | None = None
    url: str | None = None


class CleanReport(BaseModel):
    cleaned: int = 0
    failed: int = 0

    @property
    def message(self) -> str:
        if self.cleaned == 0 and self.failed == 0:
            return "No URLs required cleaning."
        message = f"{self.cleaned} URL(s) cleaned successfully."
        if self.failed:
            message += f" {self.failed} update(s) failed (check console)."
        return message


class TabHost(Protocol):
    """Host primitives for listing and navigating open documents."""

    async def query(self, window_id: int | None = None) -> list[Tab]: ...

    async def update(self, tab_id: int, url: str) -> None: ...


class Notifier(Protocol):
    async def notify(self, title: str, message: str) -> None: ...


class BulkCleaner:
    def __init__(self, tabs: TabHost, notifier: Notifier, log: structlog.stdlib.BoundLogger | None = None) -> None:
        self.tabs = tabs
        self.notifier = notifier
        self.log = log or structlog.get_logger(__name__)

    async def _update_one(self, tab: Tab, cleaned_url: str) -> None:
        try:
            await self.tabs.update(tab.id, cleaned_url)
        except Exception as exc:
            raise UpdateError(tab.id, tab.url, str(exc)) from exc

    async def _notify(self, title: str, message: str) -> None:
        try:
            await self.notifier.notify(title, message)
        except Exception:
            self.log.exception("bulk.notify_failed", title=title)

    async def clean_all(self, window_id: int | None = None) -> CleanReport | None:
        """Clean all documents in *window_id* and notify the user of the outcome.

        Updates run concurrently and independently; a failed update is counted,
        never fatal. Returns None when the documents could not be listed.
        """
        try:
            tabs = await self.tabs.query(window_id)
        except Exception:
            self.log.exception("bulk.query_failed", window_id=window_id)
            await self._notify(ERROR_TITLE, ERROR_MESSAGE)
            return None

        pending = []
        for tab in tabs:
            if not tab.id or not tab.url:
                continue
            cleaned_url = strip_query(tab.url)
            if cleaned_url:
                pending.append(self._update_one(tab, cleaned_url))

        results = await asyncio.gather(*pending, return_exceptions=True)

        report = CleanReport()
        for result in results:
            if isinstance(result, BaseException):
                report.failed += 1
                self.log.error("bulk.update_failed", error=str(result))
            else:
                report.cleaned += 1

        self.log.info("bulk.complete", cleaned=report.cleaned, failed=report.failed)
        await self._notify(RESULT_TITLE, report.message)
        return report

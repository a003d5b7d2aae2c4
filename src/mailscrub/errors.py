"""Error taxonomy. Every one of these is recovered where it is raised."""

from __future__ import annotations


class MailscrubError(Exception):
    """Base class for recoverable mailscrub failures."""


class ParseError(MailscrubError, ValueError):
    """Malformed URL string; the caller leaves the input unchanged."""


class DecodeError(MailscrubError, ValueError):
    """A base64 or percent-decoding attempt inside the unwrapper failed."""


class StoreReadError(MailscrubError):
    """The feature-flag store could not be read."""


class UpdateError(MailscrubError):
    """Navigating one open document to its cleaned URL failed."""

    def __init__(self, tab_id: int, url: str, reason: str = "") -> None:
        self.tab_id = tab_id
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to update tab {tab_id} (URL: {url}): {reason}" if reason else f"Failed to update tab {tab_id} (URL: {url})")

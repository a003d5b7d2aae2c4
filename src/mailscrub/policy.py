"""Domain policy: which URLs must keep their query string untouched."""

from __future__ import annotations

from collections.abc import Iterable

from mailscrub.errors import ParseError
from mailscrub.urls import parse_url

WEBMAIL_HOST = "mail.google.com"

# First-party hosts whose own features read their query string.
# Matched on the exact host or any subdomain.
SKIP_QUERY_HOSTS = frozenset(
    {
        WEBMAIL_HOST,
        "google.com",
        "accounts.google.com",
        "docs.google.com",
        "drive.google.com",
        "calendar.google.com",
        "meet.google.com",
        "chat.google.com",
        "googleusercontent.com",
    }
)

# (host, path) pairs inside SKIP_QUERY_HOSTS that are plain redirectors
SAFE_REDIRECT_PATHS = frozenset(
    {
        ("google.com", "/url"),
        ("www.google.com", "/url"),
    }
)

# Wrappers that redirect onward but need their own query to do so
# (meeting participant ids, join tokens, session or article ids).
PRESERVE_QUERY_HOSTS = frozenset(
    {
        "zoom.us",
        "zoomgov.com",
        "teams.microsoft.com",
        "teams.live.com",
        "webex.com",
        "gotomeeting.com",
        "bluejeans.com",
        "whereby.com",
        "calendly.com",
        "docusign.net",
    }
)


def host_matches(host: str, domains: Iterable[str]) -> bool:
    """True when *host* equals one of *domains* or is a subdomain of one."""
    host = host.lower().rstrip(".")
    for domain in domains:
        if host == domain or host.endswith(f".{domain}"):
            return True
    return False


class DomainPolicy:
    """Host allow-lists plus the two fail-safe predicates over them."""

    def __init__(
        self,
        skip_hosts: Iterable[str] = SKIP_QUERY_HOSTS,
        preserve_hosts: Iterable[str] = PRESERVE_QUERY_HOSTS,
        safe_paths: Iterable[tuple[str, str]] = SAFE_REDIRECT_PATHS,
    ) -> None:
        self.skip_hosts = frozenset(h.lower() for h in skip_hosts)
        self.preserve_hosts = frozenset(h.lower() for h in preserve_hosts)
        self.safe_paths = frozenset(safe_paths)

    def extended(self, *, skip_hosts: Iterable[str] = (), preserve_hosts: Iterable[str] = ()) -> DomainPolicy:
        """Return a copy with extra hosts added to either list."""
        return DomainPolicy(
            skip_hosts=self.skip_hosts | {h.lower() for h in skip_hosts},
            preserve_hosts=self.preserve_hosts | {h.lower() for h in preserve_hosts},
            safe_paths=self.safe_paths,
        )

    def must_skip_query_stripping(self, url: str) -> bool:
        try:
            parsed = parse_url(url)
        except ParseError:
            return True

        if (parsed.host, parsed.path) in self.safe_paths:
            return False
        return host_matches(parsed.host, self.skip_hosts)

    def must_preserve_query_across_hop(self, url: str) -> bool:
        try:
            parsed = parse_url(url)
        except ParseError:
            return True
        return host_matches(parsed.host, self.preserve_hosts)


DEFAULT_POLICY = DomainPolicy()


def must_skip_query_stripping(url: str) -> bool:
    """URL's own host depends on its query string (webmail and first-party apps)."""
    return DEFAULT_POLICY.must_skip_query_stripping(url)


def must_preserve_query_across_hop(url: str) -> bool:
    """URL is a wrapper whose query carries state the next hop needs."""
    return DEFAULT_POLICY.must_preserve_query_across_hop(url)


def is_webmail_url(url: str | None) -> bool:
    """True when *url* points at the webmail interface."""
    return isinstance(url, str) and WEBMAIL_HOST in url

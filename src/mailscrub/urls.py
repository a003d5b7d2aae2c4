"""URL parsing, canonical serialization and query stripping."""

from __future__ import annotations

from dataclasses import dataclass, replace
from urllib.parse import urlsplit

from mailscrub.errors import ParseError

PROCESSABLE_SCHEMES = frozenset({"http", "https"})
DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ParsedUrl:
    """A URL split into its components.

    ``query`` and ``fragment`` are ``None`` when the component is absent and
    ``""`` when the delimiter is present with nothing after it. A canonical
    input string serializes back byte-for-byte; a bare trailing ``?`` is not
    canonical and is dropped.
    """

    scheme: str
    host: str
    path: str
    query: str | None = None
    fragment: str | None = None
    port: int | None = None
    userinfo: str | None = None
    has_authority: bool = True

    @property
    def netloc(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is not None:
            host = f"{host}:{self.port}"
        if self.userinfo is not None:
            host = f"{self.userinfo}@{host}"
        return host

    @property
    def is_processable(self) -> bool:
        return self.scheme in PROCESSABLE_SCHEMES

    def without_query(self) -> ParsedUrl:
        return replace(self, query=None)

    def to_string(self) -> str:
        out = f"{self.scheme}:"
        if self.has_authority:
            out += f"//{self.netloc}"
        out += self.path
        # An empty query serializes like no query at all, as in the browser URL API
        if self.query:
            out += f"?{self.query}"
        if self.fragment is not None:
            out += f"#{self.fragment}"
        return out

    def __str__(self) -> str:
        return self.to_string()


def parse_url(url: str) -> ParsedUrl:
    """Parse *url* into a ParsedUrl, raising ParseError on malformed input.

    Scheme and host are lower-cased, a default port is dropped and an empty
    http(s) path becomes ``/``.
    """
    if not isinstance(url, str):
        raise ParseError(f"URL must be a string, got {type(url).__name__}")

    url = url.strip()
    if not url:
        raise ParseError("empty URL")

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise ParseError(f"invalid URL {url!r}: {exc}") from exc

    scheme = parts.scheme.lower()
    if not scheme:
        raise ParseError(f"missing scheme in {url!r}")

    has_authority = url.split(":", 1)[1].startswith("//")
    host = (parts.hostname or "").lower()
    userinfo = parts.netloc.rpartition("@")[0] if "@" in parts.netloc else None

    path = parts.path
    if scheme in PROCESSABLE_SCHEMES:
        if not host:
            raise ParseError(f"missing host in {url!r}")
        if any(ch.isspace() for ch in host):
            raise ParseError(f"invalid host {host!r}")
        if not path:
            path = "/"

    if port is not None and DEFAULT_PORTS.get(scheme) == port:
        port = None

    before_fragment = url.split("#", 1)[0]
    return ParsedUrl(
        scheme=scheme,
        host=host,
        path=path,
        query=parts.query if "?" in before_fragment else None,
        fragment=parts.fragment if "#" in url else None,
        port=port,
        userinfo=userinfo,
        has_authority=has_authority,
    )


def strip_query(url: str) -> str | None:
    """Remove the query string from an http(s) URL.

    Returns the cleaned URL, or None when the URL cannot be parsed, is not
    http(s), has no query, or would serialize unchanged.
    """
    try:
        parsed = parse_url(url)
    except ParseError:
        return None

    if not parsed.is_processable or parsed.query is None:
        return None

    original = parsed.to_string()
    cleaned = parsed.without_query().to_string()
    return cleaned if cleaned != original else None

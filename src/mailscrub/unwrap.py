"""Tracking-link unwrapping: recover the destination behind redirector URLs."""

from __future__ import annotations

import base64
import binascii
from urllib.parse import unquote

import structlog

from mailscrub.errors import DecodeError, ParseError
from mailscrub.urls import ParsedUrl, parse_url

logger = structlog.get_logger(__name__)

MAX_HOPS = 5

# Hosts that encode the destination as a base64url path segment
PATH_REDIRECTOR_HOSTS = frozenset({"newslink.reuters.com"})

# base64 of "htt"; every encoded http(s) URL starts with it
ENCODED_URL_MARKER = "aHR0"

# Probed in this order; the first decodable candidate wins
REDIRECT_PARAMS = (
    "url",
    "u",
    "q",
    "redirect",
    "redirect_url",
    "redirectUrl",
    "redir",
    "destination",
    "dest",
    "target",
    "continue",
    "next",
    "link",
)

URL_PREFIXES = ("http://", "https://")


def _looks_like_url(value: str) -> bool:
    return value.startswith(URL_PREFIXES)


def decode_base64url(value: str) -> str:
    """Decode unpadded base64url text, raising DecodeError on failure."""
    normalized = value.replace("-", "+").replace("_", "/")
    padded = normalized + "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(padded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise DecodeError(f"not base64url: {value[:40]!r}") from exc


def decode_percent(value: str) -> str:
    """Percent-decode *value*, raising DecodeError if nothing was decoded."""
    try:
        decoded = unquote(value, errors="strict")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"bad percent-encoding: {value[:40]!r}") from exc
    if decoded == value:
        raise DecodeError("no percent-escapes")
    return decoded


def raw_query_params(query: str | None) -> dict[str, str]:
    """Split a query into name -> first raw (still encoded) value."""
    params: dict[str, str] = {}
    if not query:
        return params
    for pair in query.split("&"):
        if not pair:
            continue
        name, _, value = pair.partition("=")
        try:
            name = unquote(name.replace("+", " "), errors="strict")
        except UnicodeDecodeError:
            continue
        params.setdefault(name, value)
    return params


def decode_path_segment(parsed: ParsedUrl) -> str | None:
    """Vendor redirector: destination base64url-encoded in a path segment."""
    if parsed.host not in PATH_REDIRECTOR_HOSTS:
        return None

    for segment in filter(None, parsed.path.split("/")):
        if not segment.startswith(ENCODED_URL_MARKER):
            continue
        try:
            decoded = decode_base64url(segment)
        except DecodeError:
            continue
        if _looks_like_url(decoded):
            return decoded
    return None


def _decode_candidate(value: str) -> str | None:
    if _looks_like_url(value):
        return value
    for decoder in (decode_percent, decode_base64url):
        try:
            decoded = decoder(value)
        except DecodeError:
            continue
        if _looks_like_url(decoded):
            return decoded
    return None


def decode_query_redirect(parsed: ParsedUrl) -> str | None:
    """Generic redirector: destination carried in a well-known parameter."""
    params = raw_query_params(parsed.query)
    if not params:
        return None

    for name in REDIRECT_PARAMS:
        value = params.get(name)
        if not value:
            continue
        target = _decode_candidate(value)
        if target is not None:
            return target
    return None


def unwrap(url: str, max_hops: int = MAX_HOPS) -> str:
    """Follow known redirector encodings from *url* to the inner destination.

    At most *max_hops* decodes are applied in total. Never raises; on any
    parse failure the last good URL is returned.
    """
    current = url
    for _ in range(max_hops):
        try:
            parsed = parse_url(current)
        except ParseError:
            break

        target = decode_path_segment(parsed) or decode_query_redirect(parsed)
        if target is None or target == current:
            break

        logger.debug("unwrap.hop", source=current, target=target)
        current = target
    return current

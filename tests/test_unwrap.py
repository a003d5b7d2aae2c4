"""Tests for tracking-link unwrapping."""

from __future__ import annotations

import base64
from urllib.parse import quote

import pytest

from mailscrub.errors import DecodeError
from mailscrub.unwrap import (
    REDIRECT_PARAMS,
    decode_base64url,
    decode_percent,
    raw_query_params,
    unwrap,
)


def _b64url(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")


class TestDecoders:
    def test_base64url_unpadded(self):
        assert decode_base64url(_b64url("https://example.com/a?b=c")) == "https://example.com/a?b=c"

    def test_base64url_rejects_garbage(self):
        with pytest.raises(DecodeError):
            decode_base64url("not*base64!")

    def test_base64url_rejects_invalid_length(self):
        with pytest.raises(DecodeError):
            decode_base64url("aHR0c")

    def test_percent(self):
        assert decode_percent("https%3A%2F%2Fexample.com") == "https://example.com"

    def test_percent_without_escapes(self):
        with pytest.raises(DecodeError):
            decode_percent("plain")

    def test_raw_query_params_keeps_values_encoded(self):
        params = raw_query_params("u=https%3A%2F%2Fa.example&x=1&u=second&flag&=novalue")
        assert params["u"] == "https%3A%2F%2Fa.example"
        assert params["x"] == "1"
        assert params["flag"] == ""

    def test_redirect_param_priority(self):
        assert REDIRECT_PARAMS[:3] == ("url", "u", "q")
        assert REDIRECT_PARAMS[-1] == "link"


class TestQueryRedirect:
    def test_percent_encoded_target(self):
        url = "https://redirector.example/go?u=https%3A%2F%2Fnews.example%2Farticle%3Fref%3Dabc"
        assert unwrap(url) == "https://news.example/article?ref=abc"

    def test_verbatim_target(self):
        assert unwrap("https://r.example/?dest=https://a.example/x") == "https://a.example/x"

    def test_base64_target(self):
        url = f"https://r.example/click?target={_b64url('https://a.example/landing')}"
        assert unwrap(url) == "https://a.example/landing"

    def test_priority_order_wins(self):
        url = "https://r.example/?next=https%3A%2F%2Fsecond.example&url=https%3A%2F%2Ffirst.example"
        assert unwrap(url) == "https://first.example"

    def test_skips_undecodable_candidates(self):
        url = "https://r.example/?url=not-a-url&redirect=https%3A%2F%2Fok.example%2F"
        assert unwrap(url) == "https://ok.example/"

    def test_no_redirect_params(self):
        url = "https://example.com/a?x=1&y=2"
        assert unwrap(url) == url

    def test_non_url_values_ignored(self):
        url = "https://www.google.com/search?q=python+url+parsing"
        assert unwrap(url) == url

    def test_google_url_redirector(self):
        url = "https://www.google.com/url?q=https%3A%2F%2Fexample.com%2Fstory%3Fa%3D1&sa=U"
        assert unwrap(url) == "https://example.com/story?a=1"


class TestPathSegment:
    def test_reuters_newslink(self):
        target = "https://www.reuters.com/markets/story-2024/"
        url = f"https://newslink.reuters.com/click/12345/{_b64url(target)}/tracking"
        assert unwrap(url) == target

    def test_marker_without_url_is_skipped(self):
        # "aHR0" prefix decodes to "htt..." but not a URL scheme
        url = f"https://newslink.reuters.com/{_b64url('httpx-is-not-a-scheme')}"
        assert unwrap(url) == url

    def test_other_hosts_not_path_decoded(self):
        url = f"https://example.com/{_b64url('https://a.example/')}"
        assert unwrap(url) == url

    def test_path_decode_then_query_decode(self):
        inner = "https://r.example/go?url=https%3A%2F%2Ffinal.example%2Fpage"
        url = f"https://newslink.reuters.com/{_b64url(inner)}"
        assert unwrap(url) == "https://final.example/page"


class TestHopLimit:
    def _chain(self, depth: int) -> str:
        url = "https://final.example/"
        for i in range(depth):
            url = f"https://hop{i}.example/?url={quote(url, safe='')}"
        return url

    def test_five_hops_resolved(self):
        assert unwrap(self._chain(5)) == "https://final.example/"

    def test_stops_after_five_hops(self):
        result = unwrap(self._chain(7))
        assert result != "https://final.example/"
        assert result.startswith("https://hop1.example/")

    def test_custom_hop_limit(self):
        assert unwrap(self._chain(2), max_hops=1).startswith("https://hop0.example/")

    def test_self_referencing_loop_terminates(self):
        url = "https://loop.example/?url=https://loop.example/?url=https://loop.example/"
        assert isinstance(unwrap(url), str)

    @pytest.mark.parametrize(
        "url",
        ["", "not a url", "https://[bad/?url=https://x", "https://r.example/?url=https://[bad", "javascript:alert(1)", "https://r.example/?u=%ff%fe"],
    )
    def test_malformed_input_returns_string(self, url):
        assert isinstance(unwrap(url), str)

    def test_unparseable_inner_stops(self):
        url = "https://r.example/?url=https://[bad"
        assert unwrap(url) == "https://[bad"

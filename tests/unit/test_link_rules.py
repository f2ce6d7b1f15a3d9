import pytest

from slinker.core.link_rules import is_valid_url, normalize_url, with_referrer_marker


def test_normalize_keeps_existing_protocol():
    assert normalize_url("http://example.com") == "http://example.com"
    assert normalize_url("HTTPS://example.com") == "HTTPS://example.com"


def test_normalize_defaults_to_https_and_trims():
    assert normalize_url(" example.com/page ") == "https://example.com/page"


def test_normalize_is_idempotent():
    once = normalize_url("example.com")
    assert normalize_url(once) == once


@pytest.mark.parametrize("url", ["example.com", "https://a.b/c?d=e#f", "sub.example.co.uk:8443/x"])
def test_is_valid_url_accepts(url):
    assert is_valid_url(url) is True


@pytest.mark.parametrize("url", ["", "ftp://example.com", "javascript:alert(1)", "two words.com"])
def test_is_valid_url_rejects(url):
    assert is_valid_url(url) is False


def test_referrer_marker_appended():
    assert with_referrer_marker("https://example.com/page", "slinker") == "https://example.com/page?from=slinker"


def test_referrer_marker_merges_with_query_and_keeps_fragment():
    assert (
        with_referrer_marker("https://example.com/p?a=1#top", "slinker")
        == "https://example.com/p?a=1&from=slinker#top"
    )


def test_referrer_marker_keeps_users_own_from_param():
    assert (
        with_referrer_marker("https://example.com/r?from=2020-01&to=2021-01", "slinker")
        == "https://example.com/r?from=2020-01&to=2021-01&from=slinker"
    )


def test_referrer_marker_does_not_reencode_query():
    assert (
        with_referrer_marker("https://example.com/s?q=a%20b&flag", "slinker")
        == "https://example.com/s?q=a%20b&flag&from=slinker"
    )


def test_referrer_marker_after_empty_query():
    assert with_referrer_marker("https://example.com/p?", "slinker") == "https://example.com/p?from=slinker"


def test_referrer_marker_disabled_with_empty_tag():
    assert with_referrer_marker("https://example.com/p", "") == "https://example.com/p"

from __future__ import annotations
import re
from urllib.parse import quote

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

ALLOWED_SCHEMES = ("http://", "https://")
DEFAULT_SCHEME = "https://"
REFERRER_PARAM = "from"

# "scheme:" not followed by a digit, so "localhost:8080" is still a bare host
_EXPLICIT_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):(?!\d)")

_http_url = TypeAdapter(HttpUrl)


def has_http_scheme(url: str) -> bool:
    return url.lower().startswith(ALLOWED_SCHEMES)


def normalize_url(url: str) -> str:
    trimmed = url.strip()
    if has_http_scheme(trimmed):
        return trimmed
    return DEFAULT_SCHEME + trimmed


def is_valid_url(url: str) -> bool:
    """
    True when `url` is (or normalizes to) an absolute http(s) URL.

    Inputs that name some other scheme (ftp:, javascript:, mailto:) are
    rejected rather than having https:// glued in front of them.
    """
    trimmed = url.strip()
    if not trimmed:
        return False
    if not has_http_scheme(trimmed) and _EXPLICIT_SCHEME_RE.match(trimmed):
        return False

    normalized = normalize_url(trimmed)
    if any(ch.isspace() for ch in normalized):
        return False
    try:
        parsed = _http_url.validate_python(normalized)
    except PydanticValidationError:
        return False
    return bool(parsed.host)


def with_referrer_marker(url: str, tag: str) -> str:
    """
    Append `from=<tag>` to the query string, leaving the stored URL untouched
    otherwise. An empty tag returns the URL as is.
    """
    if not tag:
        return url
    base, hash_mark, fragment = url.partition("#")
    if "?" not in base:
        sep = "?"
    elif base.endswith(("?", "&")):
        sep = ""
    else:
        sep = "&"
    return f"{base}{sep}{REFERRER_PARAM}={quote(tag, safe='')}{hash_mark}{fragment}"

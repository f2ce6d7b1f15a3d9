from __future__ import annotations
import logging
from typing import Callable, Optional

from slinker.core.errors import GenerationExhausted, NotFoundOrUnauthorized, ShortCodeConflict, ValidationError
from slinker.core.link_rules import is_valid_url, normalize_url, with_referrer_marker
from slinker.services.codes import (
    DEFAULT_CODE_LENGTH,
    DEFAULT_MAX_ATTEMPTS,
    candidate_codes,
    generate_code,
)
from slinker.services.link_store import LinkStore, ShortenedLink

logger = logging.getLogger(__name__)


def shorten(
    store: LinkStore,
    url: str,
    owner: str,
    length: int = DEFAULT_CODE_LENGTH,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    generator: Callable[[int], str] = generate_code,
) -> ShortenedLink:
    if not is_valid_url(url):
        raise ValidationError("Invalid URL format")

    # A code can pass the exists() check and still lose the insert to a
    # concurrent request; both outcomes spend one draw of the same budget.
    for code in candidate_codes(store, length=length, max_attempts=max_attempts, generator=generator):
        try:
            link = store.create(url, code, owner)
        except ShortCodeConflict:
            logger.warning("Short code %s was taken between lookup and insert", code)
            continue
        logger.info("Shortened %s -> %s for %s", link.original_url, link.short_code, owner)
        return link

    logger.error("No short code could be stored after %d attempts", max_attempts)
    raise GenerationExhausted()


def list_links(store: LinkStore, owner: str, limit: int) -> list[ShortenedLink]:
    return store.list_by_owner(owner, limit)


def delete_link(store: LinkStore, owner: str, code: str) -> None:
    if not store.delete_by_owner_and_code(owner, code):
        raise NotFoundOrUnauthorized()
    logger.info("Deleted short code %s for %s", code, owner)


def resolve_redirect(store: LinkStore, code: str, referrer_tag: str = "") -> Optional[str]:
    """Target URL for `code`, or None when the code is unknown."""
    link = store.find_by_code(code)
    if link is None:
        return None
    return with_referrer_marker(normalize_url(link.original_url), referrer_tag)


def record_click(store: LinkStore, code: str) -> None:
    """Detached click increment: failures are logged and never reach the redirect."""
    try:
        store.increment_clicks(code)
    except Exception:
        logger.exception("Failed to increment clicks for %s", code)

from __future__ import annotations
import logging
import secrets
import string
from typing import Callable, Iterator

from slinker.services.link_store import LinkStore

logger = logging.getLogger(__name__)

# nanoid's URL-safe alphabet
_URLSAFE_ALPHABET = string.ascii_letters + string.digits + "_-"

DEFAULT_CODE_LENGTH = 8
DEFAULT_MAX_ATTEMPTS = 10


def generate_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    return "".join(secrets.choice(_URLSAFE_ALPHABET) for _ in range(length))


def candidate_codes(
    store: LinkStore,
    length: int = DEFAULT_CODE_LENGTH,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    generator: Callable[[int], str] = generate_code,
) -> Iterator[str]:
    """
    Yield codes that are not in the store yet, one random draw per attempt.

    Every draw counts against `max_attempts`, whether it collided here or
    the caller later failed to insert it. Stops silently when the budget is spent.
    """
    for attempt in range(1, max_attempts + 1):
        code = generator(length)
        if store.exists(code):
            logger.debug("Short code collision on attempt %d: %s", attempt, code)
            continue
        yield code


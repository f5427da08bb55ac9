"""Drop token generation."""

import logging
import secrets
import time
from typing import Callable

logger = logging.getLogger(__name__)

MIN_TOKEN_BYTES = 2
MAX_TOKEN_BYTES = 16


def generate_token(
    is_taken: Callable[[str], bool],
    random_bytes: Callable[[int], bytes] = secrets.token_bytes,
    fallback: Callable[[], int] = time.monotonic_ns,
) -> str:
    """Generate a hex token that is not currently taken.

    Tries 2, 3, ... 16 random bytes and returns the first candidate that
    is free, so tokens stay short while few slots exist.

    If every length collides the token falls back to a nanosecond
    timestamp. That value is predictable and only unique within this
    process; a warning is logged whenever it is used.

    Args:
        is_taken: Membership check against the registry
        random_bytes: Source of random bytes
        fallback: Last-resort unique value

    Returns:
        Token string
    """
    for length in range(MIN_TOKEN_BYTES, MAX_TOKEN_BYTES + 1):
        try:
            candidate = random_bytes(length).hex()
        except OSError as e:
            logger.warning(
                "Random source failed, trying next length",
                extra={"length": length, "error": str(e)},
            )
            continue

        if not is_taken(candidate):
            return candidate

    token = str(fallback())
    logger.warning(
        "All random token lengths collided, using timestamp fallback",
        extra={"max_bytes": MAX_TOKEN_BYTES},
    )
    return token

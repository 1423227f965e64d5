"""Session code generation and validation."""

import random

from .config import MAX_SESSION_CODE_LENGTH, SESSION_CODE_ADJECTIVES, SESSION_CODE_NOUNS


def validate_session_code(code):
    """Normalize a session code, or return None if it is unusable."""
    if code is None:
        return None
    normalized = str(code).strip().lower()
    if not normalized or len(normalized) > MAX_SESSION_CODE_LENGTH:
        return None
    return normalized


def generate_session_code(exists, rng=random):
    """Pick an unused adjective-noun-NNN code.

    exists is a callable returning True for codes already taken.
    """
    while True:
        candidate = "{}-{}-{}".format(
            rng.choice(SESSION_CODE_ADJECTIVES),
            rng.choice(SESSION_CODE_NOUNS),
            rng.randint(100, 999),
        )
        if not exists(candidate):
            return candidate

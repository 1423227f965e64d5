"""Concept name canonicalization and order-independent edge keys."""

from .config import EDGE_KEY_SEPARATOR


class InvalidInput(ValueError):
    """Base class for rejected submissions."""


class InvalidConcept(InvalidInput):
    """Concept text is empty after normalization."""


class InvalidConceptPair(InvalidInput):
    """Both sides of a pair normalize to the same concept."""


def normalize(text):
    """Normalize concept text for identity.

    Strips surrounding whitespace and case-folds. Raises InvalidConcept if
    nothing is left.
    """
    if not isinstance(text, str):
        raise InvalidConcept("Concept must be a string")
    name = text.replace(EDGE_KEY_SEPARATOR, "").strip().casefold()
    if not name:
        raise InvalidConcept("Concept must not be empty")
    return name


def display_label(text):
    """Trimmed original text, kept for presentation only."""
    return text.replace(EDGE_KEY_SEPARATOR, "").strip()


def edge_key(a, b):
    """Build the canonical key for the unordered pair (a, b).

    edge_key(a, b) == edge_key(b, a) for any distinct concepts.
    """
    left = normalize(a)
    right = normalize(b)
    if left == right:
        raise InvalidConceptPair("Concepts must be distinct")
    if right < left:
        left, right = right, left
    return f"{left}{EDGE_KEY_SEPARATOR}{right}"


def split_edge_key(key):
    """Return the (smaller, larger) concept pair encoded in an edge key."""
    left, sep, right = key.partition(EDGE_KEY_SEPARATOR)
    if not sep or not left or not right:
        raise ValueError(f"Malformed edge key: {key!r}")
    return left, right

"""Log entry validation — decides whether a decoded payload is a log entry."""


def is_valid_entry(candidate) -> bool:
    """Return True if *candidate* is a non-empty JSON object.

    Scalars, arrays, null and ``{}`` are rejected. No particular field
    (``sessionId``, ``time``, ``type``, ``data``...) is required.
    """
    return isinstance(candidate, dict) and len(candidate) > 0


def normalize_entries(payload) -> list:
    """Wrap a single decoded value in a list; arrays pass through unchanged."""
    if isinstance(payload, list):
        return payload
    return [payload]


def first_invalid(candidates: list) -> int | None:
    """Return the index of the first invalid candidate, or None if all pass."""
    for index, candidate in enumerate(candidates):
        if not is_valid_entry(candidate):
            return index
    return None

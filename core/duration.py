from __future__ import annotations

from typing import Tuple, Union

DurationValue = Union[str, int, float]

# whole, half, quarter, eighth, 16th, 32nd, 64th
DURATION_TOKENS: Tuple[str, ...] = ("1", "2", "4", "8", "16", "32", "64")

# Fractional inputs are mapped 1:1 onto tokens; anything else falls back to a quarter.
_NUMERIC_TOKENS = {
    0.0625: "64",
    0.125: "32",
    0.25: "16",
    0.5: "8",
    1.0: "4",
    2.0: "2",
}

FALLBACK_TOKEN = "4"


def normalize_duration(value: DurationValue) -> str:
    """
    Canonicalize a note duration to a symbolic token.

    - token already in DURATION_TOKENS -> unchanged
    - number in the fraction table -> its token
    - any other number -> "4"
    - anything else -> ValueError
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")

    if isinstance(value, str):
        if value in DURATION_TOKENS:
            return value
        raise ValueError(f"Invalid duration token: {value!r} (expected one of {', '.join(DURATION_TOKENS)})")

    if isinstance(value, (int, float)):
        return _NUMERIC_TOKENS.get(float(value), FALLBACK_TOKEN)

    raise ValueError(f"Invalid duration: {value!r}")


def token_to_ticks(token: str, ppq: int) -> int:
    """Length of a duration token in ticks ("4" == one quarter == ppq)."""
    if token not in DURATION_TOKENS:
        raise ValueError(f"Invalid duration token: {token!r}")
    return (ppq * 4) // int(token)

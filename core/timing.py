"""
Note timing -> wait ticks.

Callers describe where a note starts in one of three ways. Exactly one field is
used per note, picked by RULES (first match wins):

    beat       1-indexed beat position, scaled by tempo
    startTime  raw offset, halved
    time       legacy spelling of startTime; ignored when startTime is present

A note with none of them starts at 0.
"""
from __future__ import annotations

import math
from typing import Callable, NamedTuple, Optional, Tuple

from core.score_models import NoteInput, TimingSource

# Pulses per quarter note of the output file
PPQ = 128

# Raw offsets are scaled by this factor before they become ticks
RAW_OFFSET_SCALE = 0.5


def round_half_up(x: float) -> int:
    """Round .5 towards +inf (Python's round() is banker's rounding)."""
    return int(math.floor(x + 0.5))


def beat_to_ticks(beat: float, bpm: float) -> int:
    if bpm <= 0:
        raise ValueError(f"bpm must be > 0, got {bpm}")
    return round_half_up(((beat - 1.0) * PPQ) / bpm)


def raw_offset_to_ticks(offset: float, _bpm: float = 0.0) -> int:
    return round_half_up(offset * RAW_OFFSET_SCALE)


class TimingRule(NamedTuple):
    source: TimingSource
    pick: Callable[[NoteInput], Optional[float]]
    to_ticks: Callable[[float, float], int]


RULES: Tuple[TimingRule, ...] = (
    TimingRule(TimingSource.beat, lambda n: n.beat, beat_to_ticks),
    TimingRule(TimingSource.start_time, lambda n: n.start_time, raw_offset_to_ticks),
    TimingRule(TimingSource.legacy_time, lambda n: n.time, raw_offset_to_ticks),
)


def resolve_timing(note: NoteInput, bpm: float) -> Tuple[int, TimingSource]:
    """
    Returns (ticks, source). Ticks may be negative for negative inputs;
    clamping is the caller's decision.
    """
    for rule in RULES:
        value = rule.pick(note)
        if value is not None:
            return rule.to_ticks(value, bpm), rule.source
    return 0, TimingSource.default

from __future__ import annotations

import logging

from core.duration import normalize_duration
from core.score_models import NoteInput, ResolvedEvent
from core.timing import resolve_timing

logger = logging.getLogger(__name__)

DEFAULT_VELOCITY = 100
MIDI_CHANNELS = 16


def track_channel(track_index: int) -> int:
    return track_index % MIDI_CHANNELS


def resolve_channel(note: NoteInput, track_index: int) -> int:
    # out-of-range channels wrap instead of failing
    if note.channel is None:
        return track_channel(track_index)
    return note.channel % MIDI_CHANNELS


def resolve_velocity(note: NoteInput) -> int:
    return DEFAULT_VELOCITY if note.velocity is None else note.velocity


def resolve_note(note: NoteInput, *, track_index: int, note_index: int, bpm: float) -> ResolvedEvent:
    """
    NoteInput -> ResolvedEvent. Pure: the input note is left untouched.
    Negative wait ticks are clamped to 0.
    """
    ticks, source = resolve_timing(note, bpm)
    if ticks < 0:
        logger.warning(
            "Negative start (%s=%s ticks) on track %d note %d, clamped to 0",
            source.value, ticks, track_index, note_index,
        )
        ticks = 0

    return ResolvedEvent(
        track_index=track_index,
        pitch=note.pitch,
        duration=normalize_duration(note.duration),
        velocity=resolve_velocity(note),
        channel=resolve_channel(note, track_index),
        wait_ticks=ticks,
        timing_source=source,
    )

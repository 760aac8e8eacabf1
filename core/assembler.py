from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence, TypeVar

from core.config import DEFAULT_CHUNK_SIZE
from core.notes import resolve_note, track_channel
from core.progress import NullProgress, ProgressSink, safe_report, track_percent
from core.score_models import (
    AssembledTrack,
    Composition,
    NoteInput,
    ProgramChangeEvent,
    ResolvedEvent,
    TempoEvent,
    TimeSignatureEvent,
    Track,
    TrackNameEvent,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _resolve_notes(
    notes: Sequence[NoteInput],
    *,
    track_index: int,
    first_index: int,
    bpm: float,
) -> List[ResolvedEvent]:
    return [
        resolve_note(n, track_index=track_index, note_index=first_index + i, bpm=bpm)
        for i, n in enumerate(notes)
    ]


def assemble_track(
    track: Track,
    track_index: int,
    composition: Composition,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AssembledTrack:
    """
    Event order per track:
    name? -> tempo -> time signature -> program change? -> notes (declared order)
    """
    events: list = []
    if track.name:
        events.append(TrackNameEvent(name=track.name))
    events.append(TempoEvent(bpm=composition.bpm))
    ts = composition.time_signature
    events.append(TimeSignatureEvent(numerator=ts.numerator, denominator=ts.denominator))
    if track.instrument is not None:
        events.append(ProgramChangeEvent(program=track.instrument, channel=track_channel(track_index)))

    notes = track.notes
    if len(notes) > chunk_size:
        # chunks only drive logging; concatenation keeps declared order
        n_chunks = (len(notes) + chunk_size - 1) // chunk_size
        for i, chunk in enumerate(chunked(notes, chunk_size)):
            events.extend(
                _resolve_notes(chunk, track_index=track_index, first_index=i * chunk_size, bpm=composition.bpm)
            )
            logger.debug("Track %d: chunk %d/%d resolved (%d notes)", track_index, i + 1, n_chunks, len(chunk))
    else:
        events.extend(_resolve_notes(notes, track_index=track_index, first_index=0, bpm=composition.bpm))

    return AssembledTrack(index=track_index, events=events)


def assemble_composition(
    composition: Composition,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: Optional[ProgressSink] = None,
) -> List[AssembledTrack]:
    sink = progress or NullProgress()
    total = len(composition.tracks)

    out: List[AssembledTrack] = []
    for idx, track in enumerate(composition.tracks):
        out.append(assemble_track(track, idx, composition, chunk_size=chunk_size))
        safe_report(sink, track_percent(idx + 1, total), f"Processing track {idx + 1}/{total}...")

    logger.info(
        "Assembled %d track(s), %d note(s)",
        total, sum(len(t.notes) for t in out),
    )
    return out

from __future__ import annotations

import io
from typing import List, Sequence

import mido  # type: ignore
from mido import Message, MetaMessage, MidiFile, MidiTrack  # type: ignore

from core.duration import token_to_ticks
from core.pitch import to_midi_number
from core.score_models import (
    AssembledTrack,
    ProgramChangeEvent,
    ResolvedEvent,
    TempoEvent,
    TimeSignatureEvent,
    TrackNameEvent,
)
from core.timing import PPQ

# set_tempo carries microseconds per quarter in 3 bytes
MAX_TEMPO = 0xFFFFFF


def tempo_meta(bpm: float) -> MetaMessage:
    """Very slow tempos are clamped to the largest value the meta event can hold."""
    return MetaMessage("set_tempo", tempo=min(mido.bpm2tempo(bpm), MAX_TEMPO), time=0)


def _track_messages(track: AssembledTrack, ppq: int) -> List[mido.Message]:
    """
    Notes are written back to back: each note_on waits wait_ticks after the
    previous event, its note_off follows after the note's own duration.
    A velocity of 0 is kept as is; players read that note_on as a note_off,
    so the note is silent and the explicit note_off that follows is a no-op.
    """
    msgs: list = []
    for ev in track.events:
        if isinstance(ev, TrackNameEvent):
            msgs.append(MetaMessage("track_name", name=ev.name, time=0))
        elif isinstance(ev, TempoEvent):
            msgs.append(tempo_meta(ev.bpm))
        elif isinstance(ev, TimeSignatureEvent):
            msgs.append(
                MetaMessage("time_signature", numerator=ev.numerator, denominator=ev.denominator, time=0)
            )
        elif isinstance(ev, ProgramChangeEvent):
            msgs.append(Message("program_change", program=ev.program, channel=ev.channel, time=0))
        elif isinstance(ev, ResolvedEvent):
            note = to_midi_number(ev.pitch)
            msgs.append(
                Message("note_on", note=note, velocity=ev.velocity, channel=ev.channel, time=ev.wait_ticks)
            )
            msgs.append(
                Message(
                    "note_off",
                    note=note,
                    velocity=0,
                    channel=ev.channel,
                    time=token_to_ticks(ev.duration, ppq),
                )
            )
        else:  # pragma: no cover
            raise TypeError(f"Unsupported track event: {ev!r}")

    msgs.append(MetaMessage("end_of_track", time=0))
    return msgs


def tracks_to_midi(tracks: Sequence[AssembledTrack], *, ppq: int = PPQ) -> MidiFile:
    """
    AssembledTracks -> mido MidiFile, one MIDI track per input track, in order.
    Single-track files are SMF type 0, everything else type 1.
    """
    mid = MidiFile(type=0 if len(tracks) == 1 else 1, ticks_per_beat=ppq)
    for tr in tracks:
        mtrack = MidiTrack()
        mtrack.extend(_track_messages(tr, ppq))
        mid.tracks.append(mtrack)
    return mid


def midi_to_bytes(mid: MidiFile) -> bytes:
    buf = io.BytesIO()
    mid.save(file=buf)
    return buf.getvalue()


def build_midi_bytes(tracks: Sequence[AssembledTrack], *, ppq: int = PPQ) -> bytes:
    return midi_to_bytes(tracks_to_midi(tracks, ppq=ppq))

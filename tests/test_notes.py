from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from core.notes import DEFAULT_VELOCITY, resolve_note
from core.pitch import pitch_name_to_midi, to_midi_number
from core.score_models import NoteInput, TimingSource


def _note(**kw) -> NoteInput:
    data = {"pitch": 60, "duration": "4"}
    data.update(kw)
    return NoteInput.model_validate(data)


# ---- pitch ----

@pytest.mark.parametrize(
    "name,midi",
    [("C4", 60), ("A4", 69), ("C#4", 61), ("Db4", 61), ("Bb2", 46), ("C-1", 0), ("G9", 127), ("e5", 76), ("Fx3", 55), ("bb4", 70), ("Cb4", 59), ("B#3", 60), ("Ebb4", 62), (" D4 ", 62)],
)
def test_pitch_names(name, midi):
    assert pitch_name_to_midi(name) == midi


@pytest.mark.parametrize("name", ["H4", "C", "C#", "", "60", "Ab9", "C-2", "C$4", "C4x", "#4", "B-2"])
def test_bad_pitch_names(name):
    with pytest.raises(ValueError):
        pitch_name_to_midi(name)


def test_to_midi_number_range():
    assert to_midi_number(0) == 0
    assert to_midi_number(127) == 127
    with pytest.raises(ValueError):
        to_midi_number(128)
    with pytest.raises(ValueError):
        to_midi_number(True)


def test_invalid_pitch_rejected_at_ingestion():
    with pytest.raises(ValidationError):
        _note(pitch="X9")
    with pytest.raises(ValidationError):
        _note(pitch=200)


# ---- defaults ----

def test_defaults_velocity_and_channel():
    ev = resolve_note(_note(), track_index=3, note_index=0, bpm=120)
    assert ev.velocity == DEFAULT_VELOCITY == 100
    assert ev.channel == 3


def test_channel_defaults_to_track_index_mod_16():
    ev = resolve_note(_note(), track_index=17, note_index=0, bpm=120)
    assert ev.channel == 1


def test_supplied_channel_wraps():
    ev = resolve_note(_note(channel=18), track_index=0, note_index=0, bpm=120)
    assert ev.channel == 2
    ev = resolve_note(_note(channel=9), track_index=5, note_index=0, bpm=120)
    assert ev.channel == 9
    ev = resolve_note(_note(channel=-1), track_index=0, note_index=0, bpm=120)
    assert ev.channel == 15


def test_explicit_velocity_kept():
    ev = resolve_note(_note(velocity=0), track_index=0, note_index=0, bpm=120)
    assert ev.velocity == 0


def test_pitch_representation_passes_through():
    assert resolve_note(_note(pitch="C4"), track_index=0, note_index=0, bpm=120).pitch == "C4"
    assert resolve_note(_note(pitch=64), track_index=0, note_index=0, bpm=120).pitch == 64


def test_numeric_duration_normalized():
    ev = resolve_note(_note(duration=0.5), track_index=0, note_index=0, bpm=120)
    assert ev.duration == "8"


def test_negative_wait_is_clamped_and_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="core.notes"):
        ev = resolve_note(_note(startTime=-40), track_index=1, note_index=7, bpm=120)
    assert ev.wait_ticks == 0
    assert ev.timing_source == TimingSource.start_time
    assert any("clamped" in r.getMessage() for r in caplog.records)


def test_resolved_event_records_timing_source():
    ev = resolve_note(_note(time=10), track_index=0, note_index=0, bpm=120)
    assert ev.wait_ticks == 5
    assert ev.timing_source == TimingSource.legacy_time

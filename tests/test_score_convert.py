from __future__ import annotations

import io

import mido

from core.assembler import assemble_composition
from core.score_convert import build_midi_bytes, tracks_to_midi
from core.score_models import Composition


def _build(data: dict) -> mido.MidiFile:
    raw = build_midi_bytes(assemble_composition(Composition.model_validate(data)))
    assert raw[:4] == b"MThd", "Expected SMF header"
    return mido.MidiFile(file=io.BytesIO(raw))


def _non_meta(track):
    return [m for m in track if not m.is_meta]


def test_single_track_file_layout():
    mid = _build(
        {
            "bpm": 120,
            "tracks": [
                {
                    "name": "Piano",
                    "instrument": 0,
                    "notes": [{"pitch": 60, "startTime": 0, "duration": "4", "velocity": 100}],
                }
            ],
        }
    )
    assert mid.type == 0
    assert mid.ticks_per_beat == 128
    assert len(mid.tracks) == 1

    types = [m.type for m in mid.tracks[0]]
    assert types == ["track_name", "set_tempo", "time_signature", "program_change", "note_on", "note_off", "end_of_track"]

    meta = {m.type: m for m in mid.tracks[0] if m.is_meta}
    assert meta["track_name"].name == "Piano"
    assert round(mido.tempo2bpm(meta["set_tempo"].tempo)) == 120
    assert (meta["time_signature"].numerator, meta["time_signature"].denominator) == (4, 4)

    on, off = [m for m in mid.tracks[0] if m.type in ("note_on", "note_off")]
    assert (on.note, on.velocity, on.channel, on.time) == (60, 100, 0, 0)
    assert (off.note, off.time) == (60, 128)


def test_waits_and_durations_are_relative():
    mid = _build(
        {
            "bpm": 120,
            "tracks": [
                {
                    "notes": [
                        {"pitch": "C4", "duration": "8"},
                        {"pitch": "E4", "duration": "2", "startTime": 20},
                        {"pitch": "G4", "duration": 0.0625, "time": 3},
                    ]
                }
            ],
        }
    )
    msgs = _non_meta(mid.tracks[0])
    assert [(m.type, m.note, m.time) for m in msgs] == [
        ("note_on", 60, 0),
        ("note_off", 60, 64),
        ("note_on", 64, 10),
        ("note_off", 64, 256),
        ("note_on", 67, 2),
        ("note_off", 67, 8),
    ]


def test_multi_track_is_type_1_in_order():
    mid = _build(
        {
            "tempo": 90,
            "tracks": [
                {"name": "A", "notes": [{"pitch": 60, "duration": "4"}]},
                {"name": "B", "notes": [{"pitch": 62, "duration": "4", "channel": 9}]},
                {"name": "C", "notes": []},
            ],
        }
    )
    assert mid.type == 1
    names = [next(m.name for m in t if m.type == "track_name") for t in mid.tracks]
    assert names == ["A", "B", "C"]
    assert _non_meta(mid.tracks[1])[0].channel == 9


def test_output_is_deterministic_across_input_shapes():
    by_token = {"bpm": 100, "tracks": [{"notes": [{"pitch": 60, "duration": "8", "time": 8}]}]}
    by_number = {"bpm": 100, "tracks": [{"notes": [{"pitch": "C4", "duration": 0.5, "startTime": 8}]}]}

    a = build_midi_bytes(assemble_composition(Composition.model_validate(by_token)))
    b = build_midi_bytes(assemble_composition(Composition.model_validate(by_number)))
    assert a == b


def test_empty_composition_has_no_tracks():
    mid = tracks_to_midi([])
    assert mid.tracks == []


def test_very_slow_tempo_is_clamped():
    mid = _build({"bpm": 2, "tracks": [{"notes": [{"pitch": 60, "beat": 3, "duration": "4"}]}]})
    tempo = [m for m in mid.tracks[0] if m.type == "set_tempo"][0]
    assert tempo.tempo == 0xFFFFFF
    on = [m for m in mid.tracks[0] if m.type == "note_on"][0]
    assert on.time == 128  # (3 - 1) * 128 / 2


def test_velocity_zero_is_written_as_silent_note_on():
    mid = _build({"bpm": 120, "tracks": [{"notes": [{"pitch": 60, "duration": "4", "velocity": 0}]}]})
    on, off = [m for m in mid.tracks[0] if m.type in ("note_on", "note_off")]
    assert (on.type, on.velocity) == ("note_on", 0)
    assert (off.type, off.time) == ("note_off", 128)


def test_null_time_signature_defaults_to_four_four():
    mid = _build({"bpm": 120, "timeSignature": None, "tracks": [{"notes": [{"pitch": 60, "duration": "4"}]}]})
    ts = [m for m in mid.tracks[0] if m.type == "time_signature"][0]
    assert (ts.numerator, ts.denominator) == (4, 4)

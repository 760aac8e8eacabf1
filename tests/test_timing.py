from __future__ import annotations

import pytest

from core.score_models import NoteInput, TimingSource
from core.timing import PPQ, beat_to_ticks, resolve_timing, round_half_up


def _note(**kw) -> NoteInput:
    data = {"pitch": 60, "duration": "4"}
    data.update(kw)
    return NoteInput.model_validate(data)


def test_ppq_is_128():
    assert PPQ == 128


@pytest.mark.parametrize("bpm", [40, 60, 90, 120, 200])
def test_beat_one_is_zero_at_any_tempo(bpm):
    ticks, source = resolve_timing(_note(beat=1.0), bpm)
    assert ticks == 0
    assert source == TimingSource.beat


def test_beat_two_at_120_bpm():
    # round(128 / 120) = 1
    ticks, _ = resolve_timing(_note(beat=2.0), 120)
    assert ticks == 1


def test_same_beat_differs_by_tempo():
    assert beat_to_ticks(3.0, 64) == 4
    assert beat_to_ticks(3.0, 32) == 8


def test_legacy_time_behaves_like_start_time():
    legacy, src_legacy = resolve_timing(_note(time=10), 120)
    raw, src_raw = resolve_timing(_note(startTime=10), 120)
    assert legacy == raw == 5
    assert src_legacy == TimingSource.legacy_time
    assert src_raw == TimingSource.start_time


def test_start_time_wins_over_legacy_time():
    ticks, source = resolve_timing(_note(startTime=10, time=100), 120)
    assert ticks == 5
    assert source == TimingSource.start_time


def test_beat_wins_over_offsets():
    ticks, source = resolve_timing(_note(beat=1.0, startTime=400, time=800), 120)
    assert ticks == 0
    assert source == TimingSource.beat


def test_no_timing_fields_means_zero():
    ticks, source = resolve_timing(_note(), 120)
    assert ticks == 0
    assert source == TimingSource.default


def test_rounding_is_half_up():
    # 5 * 0.5 = 2.5 -> 3 (banker's rounding would give 2)
    ticks, _ = resolve_timing(_note(startTime=5), 120)
    assert ticks == 3
    assert round_half_up(-0.5) == 0
    assert round_half_up(1.4999) == 1


def test_negative_inputs_resolve_negative():
    ticks, _ = resolve_timing(_note(startTime=-10), 120)
    assert ticks == -5
    ticks, _ = resolve_timing(_note(beat=-1.0), 64)
    assert ticks == -4


def test_start_time_snake_case_alias():
    ticks, source = resolve_timing(_note(start_time=20), 120)
    assert ticks == 10
    assert source == TimingSource.start_time


def test_resolution_does_not_mutate_note():
    n = _note(time=10)
    before = n.model_dump()
    resolve_timing(n, 120)
    assert n.model_dump() == before
    assert n.start_time is None

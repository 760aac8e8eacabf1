from __future__ import annotations

from pathlib import Path

import pytest

from core.config import get_settings
from core.emitter import resolve_output_path
from core.models import ErrorCode, ToolError
from core.utils import atomic_write_bytes, safe_unlink


@pytest.fixture(autouse=True)
def isolate_midi_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("MIDI_DIR", str(tmp_path / "midi-files"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_absolute_path_used_verbatim(tmp_path: Path):
    target = tmp_path / "deep" / "song.mid"
    assert resolve_output_path(str(target)) == target


def test_relative_path_collapses_into_midi_dir(tmp_path: Path):
    out = resolve_output_path("some/nested/dir/song.mid")
    assert out == tmp_path / "midi-files" / "song.mid"
    assert out.parent.is_dir()


def test_relative_traversal_is_discarded(tmp_path: Path):
    out = resolve_output_path("../../etc/evil.mid")
    assert out == tmp_path / "midi-files" / "evil.mid"


def test_tilde_is_not_expanded(tmp_path: Path):
    out = resolve_output_path("~/x.mid")
    assert out == tmp_path / "midi-files" / "x.mid"


def test_explicit_midi_dir_overrides_settings(tmp_path: Path):
    out = resolve_output_path("a.mid", midi_dir=tmp_path / "other")
    assert out == tmp_path / "other" / "a.mid"


@pytest.mark.parametrize("bad", ["", "   ", ".", "..", "songs/.."])
def test_unusable_names_are_invalid_params(bad):
    with pytest.raises(ToolError) as ei:
        resolve_output_path(bad)
    assert ei.value.code == ErrorCode.invalid_params


def test_atomic_write_leaves_no_temp_files(tmp_path: Path):
    target = tmp_path / "out" / "x.mid"
    atomic_write_bytes(target, b"MThd1234")
    assert target.read_bytes() == b"MThd1234"
    assert [p.name for p in target.parent.iterdir()] == ["x.mid"]


def test_atomic_write_failure_keeps_old_file(tmp_path: Path, monkeypatch):
    target = tmp_path / "x.mid"
    target.write_bytes(b"OLD")

    import core.utils as utils_module

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(utils_module.os, "replace", fail_replace)
    with pytest.raises(OSError):
        atomic_write_bytes(target, b"NEW")

    assert target.read_bytes() == b"OLD"
    assert [p.name for p in tmp_path.iterdir()] == ["x.mid"]


def test_safe_unlink(tmp_path: Path):
    p = tmp_path / "f"
    p.write_text("x")
    assert safe_unlink(p) is True
    assert not p.exists()
    assert safe_unlink(None) is False

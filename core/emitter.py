from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from core.config import get_settings
from core.models import ToolError
from core.utils import ensure_dir


def resolve_output_path(output_path: Union[str, Path], *, midi_dir: Optional[Path] = None) -> Path:
    """
    Absolute paths are used as given.
    Relative paths keep only their last segment and land in midi_dir
    ("songs/x.mid" -> <midi_dir>/x.mid, "~/x.mid" too), which is created if absent.
    """
    raw = str(output_path or "").strip()
    if not raw:
        raise ToolError.invalid_params("output_path must not be empty")

    p = Path(raw)
    if p.is_absolute():
        return p

    name = p.name
    if name in ("", ".", ".."):
        raise ToolError.invalid_params(f"output_path has no file name: {raw!r}")

    base = Path(midi_dir) if midi_dir is not None else Path(get_settings().midi_dir)
    return ensure_dir(base) / name

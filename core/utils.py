"""
Small file helpers shared by the emitter and the service.
"""
# core/utils.py
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    d = Path(p)
    d.mkdir(parents=True, exist_ok=True)
    return d


def safe_unlink(p: Optional[PathLike]) -> bool:
    """
    Delete without raising: True on success, False if missing/failed.
    """
    if not p:
        return False
    try:
        Path(p).unlink(missing_ok=True)
        return True
    except Exception as e:
        logger.warning("safe_unlink failed for %s: %s", p, e)
        return False


def atomic_write_bytes(path: PathLike, data: bytes) -> Path:
    """
    Write to a temp file in the same directory, then os.replace() it into place.
    Either the whole file lands at `path` or nothing does.
    """
    target = Path(path)
    ensure_dir(target.parent)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        safe_unlink(tmp_name)
        raise
    return target


def read_text_limited(path: PathLike, *, max_bytes: int, encoding: str = "utf-8") -> str:
    p = Path(path)
    size = p.stat().st_size
    if size > max_bytes:
        raise ValueError(f"File too large: {size} bytes > {max_bytes} bytes")
    return p.read_text(encoding=encoding)

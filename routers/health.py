"""
Health route
Liveness probe plus a few output-directory diagnostics.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import mido  # type: ignore
from fastapi import APIRouter

from core.config import get_settings
from core.timing import PPQ

router = APIRouter(prefix="/api/v1", tags=["Health"])


@router.get("/health")
def health() -> Dict[str, Any]:
    """
    - always returns ok=True if API is alive
    - reports where relative output paths end up and whether that dir exists yet
    """
    s = get_settings()
    midi_dir = Path(s.midi_dir)

    return {
        "ok": True,
        "env": s.app_env,
        "paths": {
            "midi_dir": str(midi_dir),
        },
        "checks": {
            "midi_dir_exists": midi_dir.exists(),
        },
        "midi": {
            "ppq": PPQ,
            "chunk_size": s.chunk_size,
            "mido_version": getattr(mido, "__version__", "unknown"),
        },
    }

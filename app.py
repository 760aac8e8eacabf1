"""
midi-mcp HTTP entry (FastAPI): tool listing and create_midi calls.

The MCP stdio server lives in midi_mcp/mcp_server.py; both share core.midi_service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.utils import ensure_dir
from routers.health import router as health_router
from routers.tools import router as tools_router

logger = logging.getLogger("midi_mcp")


def parse_origins(raw: Optional[str]) -> List[str]:
    """'https://a.com, https://b.com' -> ['https://a.com', 'https://b.com']"""
    return [p.strip() for p in (raw or "").split(",") if p.strip()]


@asynccontextmanager
async def lifespan(_: FastAPI):
    s = get_settings()
    try:
        ensure_dir(s.midi_dir)
    except OSError as e:
        # relative output paths will fail later with a proper tool error
        logger.warning("Could not create MIDI dir %s: %s", s.midi_dir, e)
    yield


def create_app() -> FastAPI:
    s = get_settings()

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=s.log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    app = FastAPI(
        title="midi-mcp",
        version="0.1.0",
        description="Composition JSON -> Standard MIDI File (create_midi tool over HTTP)",
        lifespan=lifespan,
    )

    # browser callers only; no origins configured -> no CORS headers at all
    origins = parse_origins(s.cors_allow_origins)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.include_router(health_router)
    app.include_router(tools_router)

    @app.get("/", include_in_schema=False)
    def root():
        return {"service": "midi-mcp", "status": "ok", "docs_url": "/docs", "tools_url": "/tools"}

    return app


app = create_app()

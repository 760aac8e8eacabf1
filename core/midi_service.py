from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from core.assembler import assemble_composition
from core.config import get_settings
from core.emitter import resolve_output_path
from core.models import (
    TOOL_NAME,
    CreateMidiArgs,
    ToolDescriptor,
    ToolError,
    ToolResponse,
)
from core.progress import NullProgress, ProgressSink, safe_report
from core.score_convert import build_midi_bytes
from core.score_models import Composition
from core.utils import atomic_write_bytes, read_text_limited

logger = logging.getLogger("midi_mcp.service")

TOOL_DESCRIPTION = (
    "Create a MIDI file from a text composition (bpm, optional timeSignature, tracks of notes). "
    "For long compositions write the composition to a JSON file first and pass composition_file."
)


def format_validation_error(e: ValidationError) -> str:
    """'tracks.0.notes.1.duration: Value error, ...; bpm: Field required'"""
    parts = []
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


class MidiService:
    """
    Request boundary for create_midi.

    1) exactly one build at a time (lock held for the whole request)
    2) every failure becomes an error-flagged ToolResponse, never an exception
    3) injectable midi_dir / chunk_size for tests; otherwise read from settings per call
    """

    def __init__(
        self,
        *,
        midi_dir: Optional[Union[str, Path]] = None,
        chunk_size: Optional[int] = None,
        max_composition_bytes: Optional[int] = None,
    ) -> None:
        self._midi_dir = Path(midi_dir) if midi_dir is not None else None
        self._chunk_size = chunk_size
        self._max_composition_bytes = max_composition_bytes
        self._lock = Lock()

    # ----------------------------
    # Settings (resolved lazily so env changes in tests apply)
    # ----------------------------
    @property
    def midi_dir(self) -> Path:
        return self._midi_dir if self._midi_dir is not None else Path(get_settings().midi_dir)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size if self._chunk_size is not None else get_settings().chunk_size

    @property
    def max_composition_bytes(self) -> int:
        if self._max_composition_bytes is not None:
            return self._max_composition_bytes
        return get_settings().max_composition_bytes

    # ----------------------------
    # Tool surface
    # ----------------------------
    def list_tools(self) -> List[ToolDescriptor]:
        schema = CreateMidiArgs.model_json_schema()
        schema["oneOf"] = [{"required": ["composition"]}, {"required": ["composition_file"]}]
        return [ToolDescriptor(name=TOOL_NAME, description=TOOL_DESCRIPTION, input_schema=schema)]

    def call_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]],
        progress: Optional[ProgressSink] = None,
    ) -> ToolResponse:
        if name != TOOL_NAME:
            logger.warning("Unknown tool requested: %s", name)
            return ToolResponse.from_error(ToolError.method_not_found(name))

        try:
            args = CreateMidiArgs.model_validate(arguments or {})
        except ValidationError as e:
            return ToolResponse.from_error(
                ToolError.invalid_params(f"Invalid arguments: {format_validation_error(e)}")
            )
        return self.create_midi(args, progress)

    def create_midi(self, args: CreateMidiArgs, progress: Optional[ProgressSink] = None) -> ToolResponse:
        with self._lock:
            try:
                path = self.build(args, progress)
            except ToolError as e:
                logger.warning("create_midi failed (%s): %s", e.code.value, e.message)
                return ToolResponse.from_error(e)
            except Exception as e:
                logger.exception("create_midi failed unexpectedly")
                return ToolResponse.from_error(ToolError.internal(f"MIDI generation failed: {e}"))

        return ToolResponse.ok(f'Created MIDI file for "{args.title}". Saved to {path}.')

    # ----------------------------
    # Build steps (raise ToolError)
    # ----------------------------
    def load_composition(self, args: CreateMidiArgs) -> Composition:
        has_inline = args.composition is not None
        has_file = args.composition_file is not None

        if not has_inline and not has_file:
            raise ToolError.invalid_params("Either composition or composition_file is required")
        if has_inline and has_file:
            raise ToolError.invalid_params("Specify only one of composition or composition_file, not both")

        data: Any
        if has_file:
            try:
                text = read_text_limited(args.composition_file, max_bytes=self.max_composition_bytes)
                data = json.loads(text)
            except (OSError, ValueError) as e:
                # ValueError covers JSONDecodeError and UnicodeDecodeError
                raise ToolError.invalid_params(f"Failed to read composition file: {e}") from e
        elif isinstance(args.composition, str):
            try:
                data = json.loads(args.composition)
            except ValueError as e:
                raise ToolError.invalid_params(f"Invalid composition JSON: {e}") from e
        else:
            data = args.composition

        if not isinstance(data, dict):
            raise ToolError.invalid_params("Invalid composition format: expected a JSON object")

        try:
            return Composition.model_validate(data)
        except ValidationError as e:
            raise ToolError.invalid_params(f"Invalid composition format: {format_validation_error(e)}") from e

    def build(self, args: CreateMidiArgs, progress: Optional[ProgressSink] = None) -> Path:
        sink = progress or NullProgress()
        safe_report(sink, 0, "MIDI generation started")

        composition = self.load_composition(args)
        target = resolve_output_path(args.output_path, midi_dir=self.midi_dir)

        logger.info(
            "Building %r: %d track(s) at %s bpm -> %s",
            args.title, len(composition.tracks), composition.bpm, target,
        )

        try:
            tracks = assemble_composition(composition, chunk_size=self.chunk_size, progress=sink)
            data = build_midi_bytes(tracks)
        except Exception as e:
            raise ToolError.internal(f"MIDI generation failed: {e}") from e

        # bytes are complete before anything touches the disk
        try:
            atomic_write_bytes(target, data)
        except OSError as e:
            raise ToolError.internal(f"Failed to write MIDI file {target}: {e}") from e

        logger.info("✅ Wrote %s (%d bytes)", target, len(data))
        safe_report(sink, 100, "MIDI generation finished")
        return target


# Singleton (production use)
midi_service = MidiService()

from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

from core.duration import normalize_duration
from core.pitch import to_midi_number


# =========================
# Ingestion (what callers send)
# =========================
class TimeSignature(BaseModel):
    numerator: int = Field(4, ge=1, le=255)
    denominator: int = Field(4, ge=1, le=128)

    @field_validator("denominator")
    @classmethod
    def _power_of_two(cls, v: int) -> int:
        # SMF stores the denominator as a power of two
        if v & (v - 1):
            raise ValueError(f"time signature denominator must be a power of two, got {v}")
        return v


class NoteInput(BaseModel):
    """
    One note as the caller wrote it.
    Timing may come from beat, startTime or the legacy time field; see core.timing.
    """
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    pitch: Union[StrictInt, StrictStr] = Field(..., description="MIDI note number or name like 'C4'")
    duration: Union[StrictStr, StrictInt, StrictFloat] = Field(
        ..., description="Token '1'..'64' or a fraction (1 = quarter note)"
    )
    beat: Optional[float] = Field(default=None, description="1-indexed beat position (1.0 = start)")
    start_time: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("startTime", "start_time"),
        description="Raw start offset",
    )
    time: Optional[float] = Field(default=None, description="Legacy alias of startTime")
    velocity: Optional[int] = Field(default=None, ge=0, le=127)
    channel: Optional[int] = Field(default=None, description="Wrapped mod 16")

    @field_validator("pitch")
    @classmethod
    def _check_pitch(cls, v: Union[int, str]) -> Union[int, str]:
        # keep the caller's representation; only check that the writer can resolve it
        to_midi_number(v)
        return v

    @field_validator("duration")
    @classmethod
    def _check_duration(cls, v: Union[str, int, float]) -> Union[str, int, float]:
        normalize_duration(v)
        return v


class Track(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: Optional[str] = None
    instrument: Optional[int] = Field(default=None, ge=0, le=127, description="General MIDI program 0-127")
    notes: List[NoteInput]


class Composition(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    # legacy payloads carry "tempo" instead of "bpm"
    bpm: float = Field(..., gt=0.0, validation_alias=AliasChoices("bpm", "tempo"))
    time_signature: TimeSignature = Field(
        default_factory=TimeSignature,
        validation_alias=AliasChoices("timeSignature", "time_signature"),
    )
    tracks: List[Track]

    @field_validator("time_signature", mode="before")
    @classmethod
    def _null_time_signature(cls, v):
        # explicit null means "use 4/4"
        return TimeSignature() if v is None else v


# =========================
# Resolution (what the assembler emits)
# =========================
class TimingSource(str, Enum):
    beat = "beat"
    start_time = "start_time"
    legacy_time = "legacy_time"
    default = "default"


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class TrackNameEvent(_Event):
    kind: Literal["track_name"] = "track_name"
    name: str


class TempoEvent(_Event):
    kind: Literal["tempo"] = "tempo"
    bpm: float = Field(..., gt=0.0)


class TimeSignatureEvent(_Event):
    kind: Literal["time_signature"] = "time_signature"
    numerator: int
    denominator: int


class ProgramChangeEvent(_Event):
    kind: Literal["program_change"] = "program_change"
    program: int = Field(..., ge=0, le=127)
    channel: int = Field(..., ge=0, le=15)


class ResolvedEvent(_Event):
    """Writer-ready note: every default filled, timing reduced to wait_ticks."""
    kind: Literal["note"] = "note"
    track_index: int = Field(..., ge=0)
    pitch: Union[int, str]
    duration: str
    velocity: int = Field(..., ge=0, le=127)
    channel: int = Field(..., ge=0, le=15)
    wait_ticks: int = Field(..., ge=0)
    timing_source: TimingSource


TrackEvent = Annotated[
    Union[TrackNameEvent, TempoEvent, TimeSignatureEvent, ProgramChangeEvent, ResolvedEvent],
    Field(discriminator="kind"),
]


class AssembledTrack(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    events: List[TrackEvent] = Field(default_factory=list)

    @property
    def notes(self) -> List[ResolvedEvent]:
        return [e for e in self.events if isinstance(e, ResolvedEvent)]

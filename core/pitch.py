from __future__ import annotations

from typing import Tuple, Union

from music21 import exceptions21
from music21 import pitch as m21pitch  # type: ignore

PitchValue = Union[int, str]

# caller spelling -> music21 spelling (x = double sharp)
_ACCIDENTALS = {"#": "#", "b": "-", "x": "##"}


def _split_name(name: str) -> Tuple[str, int]:
    """'Bb2' -> ('B-', 2), 'C-1' -> ('C', -1)."""
    s = (name or "").strip()
    body = s.rstrip("0123456789")
    digits = s[len(body):]
    if not digits:
        raise ValueError(f"Invalid pitch name: {name!r}")

    octave = int(digits)
    # music21 reads '-' as a flat, so a negative octave is split off here
    if len(body) > 1 and body.endswith("-"):
        body = body[:-1]
        octave = -octave

    if not body or body[0].upper() not in "ABCDEFG":
        raise ValueError(f"Invalid pitch name: {name!r}")

    accidentals = body[1:]
    if any(a not in _ACCIDENTALS for a in accidentals):
        raise ValueError(f"Invalid pitch name: {name!r}")

    return body[0].upper() + "".join(_ACCIDENTALS[a] for a in accidentals), octave


def pitch_name_to_midi(name: str) -> int:
    """
    "C4" -> 60, "F#3" -> 54, "Bb2" -> 46, "C-1" -> 0.
    Raises ValueError for unknown spellings or results outside 0..127.
    """
    step, octave = _split_name(name)
    try:
        p = m21pitch.Pitch(step)
        p.octave = octave
    except exceptions21.Music21Exception as e:
        raise ValueError(f"Invalid pitch name: {name!r} ({e})") from e

    # Pitch.midi folds out-of-range values back by octaves; ps does not
    midi = int(round(p.ps))
    if not 0 <= midi <= 127:
        raise ValueError(f"Pitch out of MIDI range (0-127): {name!r} -> {midi}")
    return midi


def to_midi_number(pitch: PitchValue) -> int:
    if isinstance(pitch, bool):
        raise ValueError(f"Invalid pitch: {pitch!r}")
    if isinstance(pitch, int):
        if not 0 <= pitch <= 127:
            raise ValueError(f"Pitch out of MIDI range (0-127): {pitch}")
        return pitch
    return pitch_name_to_midi(pitch)

"""Pitch parsing and semitone transposition."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from omniscore.score_models import StaffContext

SEMITONES_PER_OCTAVE: Final = 12

# Chromatic pitch class names (index 0 = C), sharp spelling
NOTE_NAMES: Final[list[str]] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

LETTER_INDEX: Final[dict[str, int]] = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}

# Micro-accidentals truncate toward the natural: a three-quarter sharp sounds
# one semitone up, a quarter sharp not at all.
ACCIDENTAL_OFFSETS: Final[dict[str, int]] = {
    "#": 1,
    "##": 2,
    "x": 2,
    "b": -1,
    "bb": -2,
    "n": 0,
    "qs": 0,
    "qf": 0,
    "tqs": 1,
    "tqf": -1,
}

# Longest accidental spellings first so "bb" is not read as "b".
PITCH_REGEX: Final = re.compile(r"^([a-gA-G])(tqs|tqf|qs|qf|bb|##|#|b|x|n)?(-?\d+)?")
ARTICULATION_REGEX: Final = re.compile(r"[.>^!~].*$")


@dataclass(frozen=True)
class Pitch:
    """
    A concrete pitch as (pitch class, octave).

    ``semitone`` is the absolute index ``octave * 12 + pitch_class``; every
    transposition goes through it so octave boundaries roll over correctly
    in both directions.
    """

    pitch_class: int
    octave: int

    @classmethod
    def from_semitone(cls, semitone: int) -> Pitch:
        octave, pitch_class = divmod(semitone, SEMITONES_PER_OCTAVE)
        return cls(pitch_class=pitch_class, octave=octave)

    @property
    def semitone(self) -> int:
        return self.octave * SEMITONES_PER_OCTAVE + self.pitch_class

    @property
    def name(self) -> str:
        """Sharp-spelled name with octave, e.g. ``'A#3'``."""
        return f"{NOTE_NAMES[self.pitch_class]}{self.octave}"

    def transpose(self, semitones: int) -> Pitch:
        return Pitch.from_semitone(self.semitone + semitones)


def strip_articulation(text: str) -> str:
    """Drop articulation marks such as ``c4.``, ``c4>`` or ``c4~``."""
    return ARTICULATION_REGEX.sub("", text).strip()


def resolve_pitch(text: str, context: StaffContext) -> Pitch | None:
    """
    Parse ``letter [accidental] [octave]`` against a staff context.

    An omitted octave is inherited from ``context.last_octave``; a present
    octave updates it. Flat and sharp spellings collapse onto the same
    semitone, so ``cb4`` resolves to B3 and ``b#3`` to C4.

    Returns:
        The resolved Pitch, or None if ``text`` does not start with a pitch
        letter.
    """
    match = PITCH_REGEX.match(text)
    if not match:
        return None

    letter, accidental, octave_text = match.groups()
    if octave_text is not None:
        context.last_octave = int(octave_text)
    octave = context.last_octave

    offset = ACCIDENTAL_OFFSETS.get(accidental or "n", 0)
    semitone = octave * SEMITONES_PER_OCTAVE + LETTER_INDEX[letter.upper()] + offset
    return Pitch.from_semitone(semitone)

"""Data models shared by the score compiler and its consumers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from omniscore.pitch import NOTE_NAMES, SEMITONES_PER_OCTAVE


@dataclass(frozen=True)
class InstrumentDefinition:
    """
    A declared (or synthesized) instrument that staff lines refer to by id.

    Attributes:
        id:                  Key used on assignment lines, e.g. ``"vn1"``.
        display_name:        Name shown in layouts, e.g. ``"Violin I"``.
        transpose_semitones: Signed written-to-sounding transposition.
        clef:                Optional clef attribute from ``def``.
        group_tag:           Group tag of the terse ``d`` form.
        visibility_tag:      Visibility tag of the terse ``d`` form.
    """

    id: str
    display_name: str
    transpose_semitones: int = 0
    clef: str | None = None
    group_tag: str | None = None
    visibility_tag: str | None = None


@dataclass
class EnsembleGroup:
    """A named, ordered display grouping of instrument ids."""

    name: str
    instrument_ids: list[str] = field(default_factory=list)


@dataclass
class StaffContext:
    """Per-instrument parsing state carried across the whole compile."""

    last_duration: str = "4"
    last_octave: int = 4
    grid_resolution: str | None = None


@dataclass
class MeasureBlock:
    """A measure-range block with its effective tempo and time signature."""

    start_measure: int
    end_measure: int
    tempo_bpm: float
    time_signature: tuple[int, int]
    lines: list[tuple[int, str]] = field(default_factory=list)

    @property
    def measure_count(self) -> int:
        return max(1, self.end_measure - self.start_measure + 1)

    @property
    def beat_seconds(self) -> float:
        return 60.0 / self.tempo_bpm

    @property
    def measure_beats(self) -> float:
        """Quarter-note beats per measure."""
        numerator, denominator = self.time_signature
        return numerator * (4.0 / denominator)


@dataclass(frozen=True)
class NoteEvent:
    """
    A single note-on with absolute timing.

    Attributes:
        pitch:           Sharp-spelled note name with octave, e.g. ``"F#5"``.
        start_time:      Start time in seconds.
        duration:        Duration in seconds.
        instrument_id:   Id of the staff that produced the note.
        instrument_name: Display name of that instrument.
    """

    pitch: str
    start_time: float
    duration: float
    instrument_id: str
    instrument_name: str

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    @property
    def midi_note(self) -> int:
        """MIDI note number, C4 = 60."""
        split = 2 if len(self.pitch) > 1 and self.pitch[1] == "#" else 1
        pitch_class = NOTE_NAMES.index(self.pitch[:split])
        octave = int(self.pitch[split:])
        return (octave + 1) * SEMITONES_PER_OCTAVE + pitch_class


@dataclass(frozen=True)
class InstrumentRow:
    """One instrument row of a display group."""

    id: str
    name: str


@dataclass(frozen=True)
class GroupLayout:
    """A display group as handed to timeline/keyboard views."""

    name: str
    instruments: list[InstrumentRow]


@dataclass(frozen=True)
class ScoreStructure:
    """Static ensemble layout plus the overall length of the score."""

    groups: list[GroupLayout]
    total_duration: float = 0.0


@dataclass(frozen=True)
class ScoreMetadata:
    """Descriptive header fields taken from ``meta`` blocks."""

    title: str | None = None
    composer: str | None = None


@dataclass(frozen=True)
class ScoreDiagnostic:
    """A recoverable problem found while compiling."""

    message: str
    line_number: int
    severity: str = "warning"

    def __str__(self) -> str:
        if self.line_number:
            return f"{self.line_number}: {self.severity}: {self.message}"
        return f"{self.severity}: {self.message}"


@dataclass(frozen=True)
class CompileResult:
    """
    Everything one compile produces.

    Unpacks as ``(events, structure)``; ``metadata``, ``diagnostics`` and the
    ``instruments`` definitions (declared and synthesized) are available as
    attributes.
    """

    NO_PLAYABLE_NOTES = "No playable notes found in the score."

    events: list[NoteEvent]
    structure: ScoreStructure
    metadata: ScoreMetadata = field(default_factory=ScoreMetadata)
    diagnostics: list[ScoreDiagnostic] = field(default_factory=list)
    instruments: list[InstrumentDefinition] = field(default_factory=list)

    @property
    def has_playable_notes(self) -> bool:
        return bool(self.events)

    @property
    def warnings(self) -> list[ScoreDiagnostic]:
        return [d for d in self.diagnostics if d.severity == "warning"]

    def __iter__(self) -> Iterator[object]:
        yield self.events
        yield self.structure

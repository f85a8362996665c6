"""Compiler defaults."""

from __future__ import annotations

from dataclasses import dataclass

from omniscore.durations import is_known_duration


@dataclass(frozen=True)
class CompilerConfig:
    """
    Defaults used until a score overrides them.

    Directives inside the score (``tempo:``, ``N/D``) always win over
    these values.
    """

    default_tempo: float = 120.0  # BPM, 0.5 s per quarter note
    default_time_signature: tuple[int, int] = (4, 4)
    default_octave: int = 4
    default_duration: str = "4"  # quarter note
    default_group_name: str = "Ungrouped"

    def __post_init__(self) -> None:
        if self.default_tempo <= 0:
            raise ValueError(f"default_tempo must be positive, got {self.default_tempo}.")
        numerator, denominator = self.default_time_signature
        if numerator <= 0 or denominator <= 0:
            raise ValueError(f"Invalid default time signature {numerator}/{denominator}.")
        if not is_known_duration(self.default_duration):
            raise ValueError(f"Unknown default duration code '{self.default_duration}'.")

    def with_tempo(self, tempo: float | None) -> CompilerConfig:
        if tempo is None:
            return self
        return CompilerConfig(
            default_tempo=tempo,
            default_time_signature=self.default_time_signature,
            default_octave=self.default_octave,
            default_duration=self.default_duration,
            default_group_name=self.default_group_name,
        )

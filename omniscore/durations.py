"""Duration codes, sticky durations and per-staff grid resolution."""

from __future__ import annotations

from typing import Final

from omniscore.score_models import StaffContext

# Duration code -> length in quarter-note beats
DURATION_BEATS: Final[dict[str, float]] = {
    "0.25": 16.0,
    "0.5": 8.0,
    "1": 4.0,
    "2": 2.0,
    "4": 1.0,
    "8": 0.5,
    "16": 0.25,
    "32": 0.125,
    "0.25.": 24.0,
    "0.5.": 12.0,
    "1.": 6.0,
    "2.": 3.0,
    "4.": 1.5,
    "8.": 0.75,
    "16.": 0.375,
    "32.": 0.1875,
}

FALLBACK_BEATS: Final = 1.0


def is_known_duration(code: str) -> bool:
    return code in DURATION_BEATS


def duration_beats(code: str) -> float:
    """Beats for a duration code; unknown codes count as one quarter note."""
    return DURATION_BEATS.get(code, FALLBACK_BEATS)


class DurationResolver:
    """
    Decides which duration code a note or rest on a staff uses.

    Precedence, highest first:

    1. An explicit ``:code`` suffix on the token.
    2. The staff's grid resolution set by ``!N``.
    3. The staff's sticky duration (last explicit code).

    Explicit codes only become sticky while no grid is active.
    """

    def set_grid(self, context: StaffContext, code: str) -> None:
        context.grid_resolution = code

    def resolve(self, context: StaffContext, explicit: str | None) -> str:
        if explicit is not None:
            if context.grid_resolution is None:
                context.last_duration = explicit
            return explicit
        if context.grid_resolution is not None:
            return context.grid_resolution
        return context.last_duration

    def beats(self, context: StaffContext, explicit: str | None) -> tuple[str, float]:
        code = self.resolve(context, explicit)
        return code, duration_beats(code)

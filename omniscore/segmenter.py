"""Measure-range segmentation, tempo/time-signature directives and staff lines."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Final

from omniscore.config import CompilerConfig
from omniscore.preprocessor import LineReporter
from omniscore.score_models import MeasureBlock, ScoreMetadata

logger = logging.getLogger(__name__)

MEASURE_HEADER_REGEX: Final = re.compile(
    r"^(?:measure|m)\s+(\d+)(?:\s*(?:\.\.|-)\s*(\d+))?(?=\s|$)(.*)$",
    re.IGNORECASE,
)
DIRECTIVE_REGEX: Final = re.compile(
    r"^(?:(?:meta|tempo|time|title|composer)\b|@|\d+\s*/\s*\d+\s*$)",
    re.IGNORECASE,
)
META_OPEN_REGEX: Final = re.compile(r"^meta\b[^}]*\{[^}]*$", re.IGNORECASE)
TEMPO_REGEX: Final = re.compile(r"\btempo\s*[:=]?\s*(-?\d+(?:\.\d+)?)", re.IGNORECASE)
TIME_SIGNATURE_REGEX: Final = re.compile(r"(\d+)\s*/\s*(\d+)")
TITLE_REGEX: Final = re.compile(r'\btitle\s*:\s*"([^"]*)"', re.IGNORECASE)
COMPOSER_REGEX: Final = re.compile(r'\bcomposer\s*:\s*"([^"]*)"', re.IGNORECASE)
QUOTED_REGEX: Final = re.compile(r'"[^"]*"')
DECLARATION_REGEX: Final = re.compile(r"^(?:(?:group|def|d)\s|instruction\b|\}$)", re.IGNORECASE)
ASSIGNMENT_REGEX: Final = re.compile(r"^(\w+(?:\s*,\s*\w+)*)\s*:(.*)$")


def parse_assignment(line: str) -> tuple[list[str], str] | None:
    """
    Split ``id[, id...]: content`` into its id list and content.

    Returns:
        ``(ids, content)``, or None if the line is not an assignment.
    """
    match = ASSIGNMENT_REGEX.match(line.strip())
    if not match:
        return None
    ids = [part.strip() for part in match.group(1).split(",")]
    return ids, match.group(2).strip()


@dataclass
class Segmentation:
    blocks: list[MeasureBlock] = field(default_factory=list)
    metadata: ScoreMetadata = field(default_factory=ScoreMetadata)


@dataclass
class _WalkState:
    tempo: float
    time_signature: tuple[int, int]
    title: str | None = None
    composer: str | None = None
    in_meta: bool = False
    block: MeasureBlock | None = None
    blocks: list[MeasureBlock] = field(default_factory=list)


class MeasureSegmenter:
    """
    Walk the score body and cut it into measure-range blocks.

    Tempo and time-signature directives before the first measure header set
    the global values. Inside a block they apply to the whole block and
    remain active for the blocks that follow.
    """

    def __init__(self, config: CompilerConfig) -> None:
        self.config = config

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _apply_directive(self, line: str, line_number: int, state: _WalkState, report_at: LineReporter) -> None:
        unquoted = QUOTED_REGEX.sub('""', line)
        tempo_match = TEMPO_REGEX.search(unquoted)
        if tempo_match:
            tempo = float(tempo_match.group(1))
            if tempo > 0:
                state.tempo = tempo
            else:
                report_at(line_number, f"ignoring tempo {tempo_match.group(1)}", "warning")

        time_match = TIME_SIGNATURE_REGEX.search(unquoted)
        if time_match:
            numerator, denominator = int(time_match.group(1)), int(time_match.group(2))
            if numerator > 0 and denominator > 0:
                state.time_signature = (numerator, denominator)
            else:
                report_at(line_number, f"ignoring time signature {numerator}/{denominator}", "warning")

        title_match = TITLE_REGEX.search(line)
        if title_match:
            state.title = title_match.group(1)
        composer_match = COMPOSER_REGEX.search(line)
        if composer_match:
            state.composer = composer_match.group(1)

        if state.block is not None:
            state.block.tempo_bpm = state.tempo
            state.block.time_signature = state.time_signature

    def _open_block(self, match: re.Match[str], line_number: int, state: _WalkState, report_at: LineReporter) -> None:
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) is not None else start
        if end < start:
            report_at(line_number, f"measure range {start}-{end} is reversed; using measure {start}", "warning")
            end = start

        state.block = MeasureBlock(
            start_measure=start,
            end_measure=end,
            tempo_bpm=state.tempo,
            time_signature=state.time_signature,
        )
        state.blocks.append(state.block)
        logger.debug("measure block %d-%d at line %d", start, end, line_number)

    def _process(self, line_number: int, line: str, state: _WalkState, report_at: LineReporter) -> None:
        if state.in_meta or DIRECTIVE_REGEX.match(line):
            if state.in_meta:
                state.in_meta = "}" not in line
            else:
                state.in_meta = bool(META_OPEN_REGEX.match(line))
            self._apply_directive(line, line_number, state, report_at)
            return

        header = MEASURE_HEADER_REGEX.match(line)
        if header:
            self._open_block(header, line_number, state, report_at)
            remainder = header.group(3).strip()
            if remainder:
                self._process(line_number, remainder, state, report_at)
            return

        if DECLARATION_REGEX.match(line):
            return

        if parse_assignment(line) is None:
            report_at(line_number, f"unrecognised line '{line}'", "warning")
        elif state.block is None:
            report_at(line_number, "staff line before the first measure header is ignored", "warning")
        else:
            state.block.lines.append((line_number, line))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, lines: list[tuple[int, str]], report_at: LineReporter) -> Segmentation:
        """
        Cut numbered, comment-free lines into measure-range blocks.

        Args:
            lines:     ``(line_number, text)`` pairs.
            report_at: Diagnostic sink taking ``(line_number, message, severity)``.

        Returns:
            The blocks in source order plus any ``meta`` title/composer.
        """
        state = _WalkState(
            tempo=self.config.default_tempo,
            time_signature=self.config.default_time_signature,
        )
        for line_number, raw in lines:
            line = raw.strip()
            if line:
                self._process(line_number, line, state, report_at)

        return Segmentation(
            blocks=state.blocks,
            metadata=ScoreMetadata(title=state.title, composer=state.composer),
        )

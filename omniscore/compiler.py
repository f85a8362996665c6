"""ScoreCompiler: turns score text into timed note events and an ensemble layout."""

from __future__ import annotations

import logging
from functools import partial
from operator import attrgetter

from omniscore.config import CompilerConfig
from omniscore.declarations import DeclarationPass, InstrumentRegistry
from omniscore.durations import DurationResolver, is_known_duration
from omniscore.pitch import Pitch, resolve_pitch, strip_articulation
from omniscore.preprocessor import LineReporter, MacroTable, Reporter, expand_repeats, strip_comments
from omniscore.score_models import (
    CompileResult,
    GroupLayout,
    InstrumentDefinition,
    InstrumentRow,
    MeasureBlock,
    NoteEvent,
    ScoreDiagnostic,
    ScoreStructure,
    StaffContext,
)
from omniscore.segmenter import MeasureSegmenter, parse_assignment
from omniscore.tokens import (
    AnnotationToken,
    BarlineToken,
    ChordToken,
    GridToken,
    PitchToken,
    RestToken,
    Token,
    tokenize,
)

logger = logging.getLogger(__name__)


class ScoreCompiler:
    """
    Compile score text into a sorted NoteEvent list plus a ScoreStructure.

    Pipeline
    --------
    1. **Preprocess** – strip comments, pull out macro definitions.
    2. **Declarations** – register instruments, staff contexts and groups.
    3. **Segment** – cut the body into measure-range blocks with their
       tempo and time signature.
    4. **Assemble** – for each block, give every staff a running clock that
       starts at the block's offset, walk its tokens, then advance the
       global offset by ``measure_count × measure_beats`` beats, whatever
       the staves actually emitted.
    5. **Merge** – stable-sort all events by start time.

    Compiling never raises on malformed score text. Problems are recorded
    as diagnostics on the result and the compiler carries on with a local
    fallback. Each call builds fresh state, so one compiler can be shared
    between threads.
    """

    def __init__(self, config: CompilerConfig | None = None) -> None:
        self.config = config if config is not None else CompilerConfig()
        self.durations = DurationResolver()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _duration_seconds(
        self,
        context: StaffContext,
        explicit: str | None,
        beat_seconds: float,
        report: Reporter,
    ) -> float:
        code, beats = self.durations.beats(context, explicit)
        if not is_known_duration(code):
            report(f"unknown duration ':{code}', using a quarter note", "warning")
        return beats * beat_seconds

    def _pitch(self, text: str, context: StaffContext, report: Reporter) -> Pitch:
        pitch = resolve_pitch(strip_articulation(text), context)
        if pitch is None:
            report(f"unrecognised pitch '{text}', using C{context.last_octave}", "warning")
            pitch = Pitch(pitch_class=0, octave=context.last_octave)
        return pitch

    def _play_staff(
        self,
        tokens: list[Token],
        definition: InstrumentDefinition,
        context: StaffContext,
        clock: float,
        barlines: int,
        block: MeasureBlock,
        block_start: float,
        events: list[NoteEvent],
        report: Reporter,
    ) -> tuple[float, int]:
        """Walk one staff's tokens; return its clock and barline count."""
        beat_seconds = block.beat_seconds
        measure_seconds = block.measure_beats * beat_seconds

        def emit(pitch: Pitch, start: float, duration: float) -> None:
            events.append(
                NoteEvent(
                    pitch=pitch.transpose(definition.transpose_semitones).name,
                    start_time=start,
                    duration=duration,
                    instrument_id=definition.id,
                    instrument_name=definition.display_name,
                )
            )

        for token in tokens:
            if isinstance(token, BarlineToken):
                barlines += 1
                clock = block_start + barlines * measure_seconds
            elif isinstance(token, GridToken):
                if not is_known_duration(token.duration):
                    report(f"unknown grid resolution '!{token.duration}', using a quarter note", "warning")
                self.durations.set_grid(context, token.duration)
            elif isinstance(token, RestToken):
                clock += self._duration_seconds(context, token.duration, beat_seconds, report)
            elif isinstance(token, PitchToken):
                duration = self._duration_seconds(context, token.duration, beat_seconds, report)
                emit(self._pitch(token.text, context, report), clock, duration)
                clock += duration
            elif isinstance(token, ChordToken):
                duration = self._duration_seconds(context, token.duration, beat_seconds, report)
                for text in token.pitches:
                    emit(self._pitch(text, context, report), clock, duration)
                clock += duration
            elif isinstance(token, AnnotationToken):
                continue
            else:
                report(f"ignoring token '{token.text}'", "warning")

        return clock, barlines

    def _assemble_block(
        self,
        block: MeasureBlock,
        block_start: float,
        registry: InstrumentRegistry,
        macros: MacroTable,
        events: list[NoteEvent],
        report_at: LineReporter,
    ) -> None:
        clocks: dict[str, float] = {}
        barlines: dict[str, int] = {}

        for line_number, line in block.lines:
            report = partial(report_at, line_number)
            assignment = parse_assignment(line)
            if assignment is None:
                continue
            ids, content = assignment
            tokens = tokenize(expand_repeats(macros.expand(content, report), report))

            for instrument_id in ids:
                definition = registry.resolve(instrument_id, report)
                clocks[instrument_id], barlines[instrument_id] = self._play_staff(
                    tokens,
                    definition,
                    registry.context(instrument_id),
                    clocks.get(instrument_id, block_start),
                    barlines.get(instrument_id, 0),
                    block,
                    block_start,
                    events,
                    report,
                )

    def _build_structure(self, registry: InstrumentRegistry, events: list[NoteEvent]) -> ScoreStructure:
        groups = [
            GroupLayout(
                name=group.name,
                instruments=[
                    InstrumentRow(id=instrument_id, name=registry.instruments[instrument_id].display_name)
                    for instrument_id in group.instrument_ids
                ],
            )
            for group in registry.groups
        ]
        total_duration = max((event.end_time for event in events), default=0.0)
        return ScoreStructure(groups=groups, total_duration=total_duration)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, text: str) -> CompileResult:
        """
        Compile score text.

        Args:
            text: Score source in the OmniScore notation.

        Returns:
            CompileResult with events sorted by start time (ties keep
            emission order), the ensemble structure, meta fields and the
            diagnostics collected on the way.
        """
        diagnostics: dict[tuple[int, str], ScoreDiagnostic] = {}

        def report_at(line_number: int, message: str, severity: str) -> None:
            key = (line_number, message)
            if key not in diagnostics:
                diagnostics[key] = ScoreDiagnostic(message=message, line_number=line_number, severity=severity)
                logger.debug("line %d: %s: %s", line_number, severity, message)

        macros = MacroTable()
        source = macros.extract(strip_comments(text))
        lines = list(enumerate(source.split("\n"), start=1))

        registry = DeclarationPass(self.config).run(lines, report_at)
        segmentation = MeasureSegmenter(self.config).run(lines, report_at)

        events: list[NoteEvent] = []
        beat_offset = 0.0
        seconds_offset = 0.0
        for block in segmentation.blocks:
            self._assemble_block(block, seconds_offset, registry, macros, events, report_at)

            block_beats = block.measure_count * block.measure_beats
            beat_offset += block_beats
            seconds_offset += block_beats * block.beat_seconds
            logger.debug(
                "measures %d-%d: %.3g beats at %.6g BPM, now at beat %.6g (%.6g s)",
                block.start_measure,
                block.end_measure,
                block_beats,
                block.tempo_bpm,
                beat_offset,
                seconds_offset,
            )

        events.sort(key=attrgetter("start_time"))
        if not events:
            report_at(0, CompileResult.NO_PLAYABLE_NOTES, "warning")

        result = CompileResult(
            events=events,
            structure=self._build_structure(registry, events),
            metadata=segmentation.metadata,
            diagnostics=list(diagnostics.values()),
            instruments=list(registry.instruments.values()),
        )

        logger.info(
            "compiled %d event(s) in %d block(s), %.3f s, %d diagnostic(s)",
            len(result.events),
            len(segmentation.blocks),
            result.structure.total_duration,
            len(result.diagnostics),
        )
        return result


def compile_score(text: str, config: CompilerConfig | None = None) -> CompileResult:
    """Compile score text with a fresh ScoreCompiler."""
    return ScoreCompiler(config).compile(text)

"""Group and instrument declarations."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import partial
from typing import Final

from omniscore.config import CompilerConfig
from omniscore.preprocessor import LineReporter, Reporter
from omniscore.score_models import EnsembleGroup, InstrumentDefinition, StaffContext

logger = logging.getLogger(__name__)

GROUP_REGEX: Final = re.compile(r'^group\s+(?:"([^"]*)"|([^\s{]+))(.*)$', re.IGNORECASE)
DEF_REGEX: Final = re.compile(
    r'^def\s+(\w+)(?:\s+(?:"([^"]*)"|(?![\w-]+=)([^\s{}]+)))?(.*)$',
    re.IGNORECASE,
)
TERSE_DEF_REGEX: Final = re.compile(r"^d\s+(\w+)(?:\s+(\S+))?(?:\s+(\S+))?\s*$")
ATTRIBUTE_REGEX: Final = re.compile(r'([\w-]+)\s*=\s*("[^"]*"|\S+)')
TRANSPOSE_REGEX: Final = re.compile(r"^[+-]?\d+$")
META_OPEN_REGEX: Final = re.compile(r"^meta\b[^}]*\{[^}]*$", re.IGNORECASE)
DECLARATION_START_REGEX: Final = re.compile(r"^d(?:ef)?\s", re.IGNORECASE)
# Several declarations on one line, e.g. after a group header
DEF_SPLIT_REGEX: Final = re.compile(r"\s+(?=def\s)", re.IGNORECASE)


@dataclass
class InstrumentRegistry:
    """Instrument definitions, their staff contexts and the display groups."""

    config: CompilerConfig
    instruments: dict[str, InstrumentDefinition] = field(default_factory=dict)
    contexts: dict[str, StaffContext] = field(default_factory=dict)
    groups: list[EnsembleGroup] = field(default_factory=list)

    def new_context(self) -> StaffContext:
        return StaffContext(
            last_duration=self.config.default_duration,
            last_octave=self.config.default_octave,
        )

    def register(self, definition: InstrumentDefinition) -> None:
        self.instruments[definition.id] = definition
        self.contexts[definition.id] = self.new_context()

    def resolve(self, instrument_id: str, report: Reporter | None = None) -> InstrumentDefinition:
        """
        Look up an instrument, synthesizing one for an undeclared id.

        Synthesized instruments use the id as display name and do not
        transpose. They are not added to any display group.
        """
        definition = self.instruments.get(instrument_id)
        if definition is None:
            definition = InstrumentDefinition(id=instrument_id, display_name=instrument_id)
            self.register(definition)
            if report is not None:
                report(f"instrument '{instrument_id}' was not declared", "warning")
        return definition

    def context(self, instrument_id: str) -> StaffContext:
        return self.contexts[instrument_id]


def _parse_attributes(text: str) -> dict[str, str]:
    return {key.lower(): value.strip('"') for key, value in ATTRIBUTE_REGEX.findall(text)}


class DeclarationPass:
    """
    Collect ``group``/``def``/``d`` declarations into an InstrumentRegistry.

    Instruments declared outside a named group land in a default group. A
    named group is closed by a line holding only ``}``, by the next
    ``group`` header, or by the end of the text; only non-empty groups are
    kept.
    """

    def __init__(self, config: CompilerConfig) -> None:
        self.config = config

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _default_group(self) -> EnsembleGroup:
        return EnsembleGroup(name=self.config.default_group_name)

    def _close(self, registry: InstrumentRegistry, group: EnsembleGroup) -> None:
        if group.instrument_ids:
            registry.groups.append(group)

    def _parse_def(self, match: re.Match[str], report: Reporter) -> InstrumentDefinition:
        instrument_id = match.group(1)
        display_name = match.group(2) if match.group(2) is not None else match.group(3)
        attributes = _parse_attributes(match.group(4))

        transpose = 0
        raw_transpose = attributes.get("transpose")
        if raw_transpose is not None:
            if TRANSPOSE_REGEX.match(raw_transpose):
                transpose = int(raw_transpose)
            else:
                report(f"invalid transpose '{raw_transpose}' for '{instrument_id}'", "warning")

        return InstrumentDefinition(
            id=instrument_id,
            display_name=display_name or instrument_id,
            transpose_semitones=transpose,
            clef=attributes.get("clef"),
        )

    def _declare(
        self,
        text: str,
        registry: InstrumentRegistry,
        group: EnsembleGroup,
        placed: set[str],
        report: Reporter,
    ) -> None:
        definition = None
        def_match = DEF_REGEX.match(text)
        if def_match:
            definition = self._parse_def(def_match, report)
        else:
            terse_match = TERSE_DEF_REGEX.match(text)
            if terse_match:
                instrument_id, group_tag, visibility_tag = terse_match.groups()
                definition = InstrumentDefinition(
                    id=instrument_id,
                    display_name=instrument_id,
                    group_tag=group_tag,
                    visibility_tag=visibility_tag,
                )

        if definition is None:
            return

        if definition.id in registry.instruments:
            report(f"instrument '{definition.id}' declared again", "warning")
        registry.register(definition)
        if definition.id not in placed:
            group.instrument_ids.append(definition.id)
            placed.add(definition.id)
        logger.debug("instrument %r (%s) declared", definition.id, definition.display_name)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, lines: list[tuple[int, str]], report_at: LineReporter) -> InstrumentRegistry:
        """
        Scan numbered lines for declarations.

        A group header may carry its declarations on the same line, and a
        ``}`` ending a header or declaration line closes the group, so
        ``group "S" { def vn "Violin" }`` is a complete group.

        Args:
            lines:     ``(line_number, text)`` pairs, comments already removed.
            report_at: Diagnostic sink taking ``(line_number, message, severity)``.
        """
        registry = InstrumentRegistry(config=self.config)
        active = self._default_group()
        active_is_default = True
        placed: set[str] = set()
        in_meta = False

        for line_number, raw in lines:
            line = raw.strip()
            if not line:
                continue

            report = partial(report_at, line_number)

            if in_meta:
                if "}" in line:
                    in_meta = False
                continue
            if META_OPEN_REGEX.match(line):
                in_meta = True
                continue

            group_match = GROUP_REGEX.match(line)
            if group_match:
                self._close(registry, active)
                name = group_match.group(1) if group_match.group(1) is not None else group_match.group(2)
                active = EnsembleGroup(name=name)
                active_is_default = False
                logger.debug("group %r opened at line %d", name, line_number)
                line = group_match.group(3).partition("{")[2].strip()
            elif line != "}" and not DECLARATION_START_REGEX.match(line):
                continue

            closes_group = line.endswith("}")
            if closes_group:
                line = line[:-1].strip()

            for piece in DEF_SPLIT_REGEX.split(line):
                if piece:
                    self._declare(piece, registry, active, placed, report)

            if closes_group and not active_is_default:
                self._close(registry, active)
                active = self._default_group()
                active_is_default = True

        self._close(registry, active)
        return registry

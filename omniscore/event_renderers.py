"""Renderer implementations for compiled score output."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Any

from omniscore.score_models import CompileResult


class EventRenderer(ABC):
    """Abstract renderer of a CompileResult."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(self, result: CompileResult) -> str:
        """Render a compile result into a file content string."""


class JsonEventRenderer(EventRenderer):
    """
    Render the payload a timeline or keyboard view consumes.

    Keys: ``metadata``, ``structure`` (groups with instrument rows and
    ``total_duration``), ``events`` (with ``midi_note`` added),
    ``diagnostics`` and ``instruments`` (full definitions incl. clef and tags).
    """

    def __init__(self, indent: int | None = None) -> None:
        self.indent = indent

    @property
    def default_extension(self) -> str:
        return ".json"

    def payload(self, result: CompileResult) -> dict[str, Any]:
        return {
            "metadata": asdict(result.metadata),
            "structure": asdict(result.structure),
            "events": [dict(asdict(event), midi_note=event.midi_note) for event in result.events],
            "diagnostics": [asdict(diagnostic) for diagnostic in result.diagnostics],
            "instruments": [asdict(definition) for definition in result.instruments],
        }

    def render(self, result: CompileResult) -> str:
        separators = (",", ":") if self.indent is None else (",", ": ")
        return json.dumps(self.payload(result), indent=self.indent, separators=separators, ensure_ascii=False)


class TextEventRenderer(EventRenderer):
    """Render a human-readable listing: groups, one line per event, diagnostics."""

    BAR_CHARS_PER_SECOND: int = 4

    @property
    def default_extension(self) -> str:
        return ".txt"

    def render(self, result: CompileResult) -> str:
        lines: list[str] = []
        metadata = result.metadata
        if metadata.title:
            heading = metadata.title
            if metadata.composer:
                heading += f" ({metadata.composer})"
            lines.append(heading)
            lines.append("")

        for group in result.structure.groups:
            rows = ", ".join(f"{row.name} [{row.id}]" for row in group.instruments)
            lines.append(f"{group.name}: {rows}")
        if result.structure.groups:
            lines.append("")

        for event in result.events:
            bar = "=" * max(1, int(event.duration * self.BAR_CHARS_PER_SECOND))
            lines.append(
                f"{event.start_time:8.3f}s  {event.instrument_id:<8} {event.pitch:<5} {bar}"
            )

        lines.append("")
        lines.append(
            f"{len(result.events)} event(s), total {result.structure.total_duration:.3f}s"
        )
        for diagnostic in result.diagnostics:
            lines.append(str(diagnostic))

        return "\n".join(lines) + "\n"

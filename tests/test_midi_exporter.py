"""Unit tests for MidiExporter."""

import logging
from pathlib import Path

import pytest

from omniscore.compiler import compile_score
from omniscore.midi_exporter import PERCUSSION_CHANNEL, MidiExporter
from omniscore.score_models import CompileResult

SCORE = "\n".join(
    [
        'meta { title: "Export Test" }',
        'group "Winds" {',
        '  def fl "Flute"',
        '  def ob "Oboe"',
        "}",
        "measure 1",
        "  fl: c5:4 d5 e5 f5",
        "  ob: [c4 e4]:1",
        "  guest: g3:2",
    ]
)


def _result() -> CompileResult:
    return compile_score(SCORE)


def test_track_order_follows_structure_then_undeclared() -> None:
    order = MidiExporter()._track_order(_result())
    assert order == [("fl", "Flute"), ("ob", "Oboe"), ("guest", "guest")]


def test_channels_skip_percussion() -> None:
    channels = [MidiExporter._channel_for(i) for i in range(20)]
    assert PERCUSSION_CHANNEL not in channels
    assert channels[:3] == [0, 1, 2]
    assert max(channels) == 15


def test_seconds_to_beats() -> None:
    exporter = MidiExporter(tempo=90)
    assert exporter._seconds_to_beats(2.0) == 3.0


def test_invalid_tempo_rejected() -> None:
    with pytest.raises(ValueError):
        MidiExporter(tempo=0)


def test_invalid_velocity_rejected() -> None:
    with pytest.raises(ValueError):
        MidiExporter(velocity=200)


def test_export_writes_standard_midi_file(tmp_path: Path) -> None:
    out = tmp_path / "score.mid"
    MidiExporter().export(_result(), str(out))

    data = out.read_bytes()
    assert data.startswith(b"MThd")
    assert data.count(b"MTrk") >= 4
    assert b"Flute" in data
    assert b"Export Test" in data


def test_export_out_of_range_notes_are_skipped(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    result = compile_score("measure 1\np: c-3 c4")
    exporter = MidiExporter()
    assert [(e.pitch, exporter._is_playable(e)) for e in result.events] == [("C-3", False), ("C4", True)]

    out = tmp_path / "range.mid"
    with caplog.at_level(logging.WARNING, logger="omniscore.midi_exporter"):
        exporter.export(result, str(out))

    assert "skipped 1 note(s) outside the MIDI range" in caplog.text
    assert out.read_bytes().startswith(b"MThd")

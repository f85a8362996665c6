"""Unit tests for group and instrument declarations."""

from omniscore.config import CompilerConfig
from omniscore.declarations import DeclarationPass, InstrumentRegistry


def _run(text: str) -> tuple[InstrumentRegistry, list[tuple[int, str, str]]]:
    reports: list[tuple[int, str, str]] = []
    lines = list(enumerate(text.split("\n"), start=1))
    registry = DeclarationPass(CompilerConfig()).run(
        lines, lambda line_number, message, severity: reports.append((line_number, message, severity))
    )
    return registry, reports


def test_quoted_def_registers_instrument() -> None:
    registry, _ = _run('def p "Grand Piano"')
    definition = registry.instruments["p"]
    assert definition.display_name == "Grand Piano"
    assert definition.transpose_semitones == 0


def test_def_with_clef_and_transpose() -> None:
    registry, _ = _run('def hn "Horn in F" clef=treble transpose=-7')
    definition = registry.instruments["hn"]
    assert definition.clef == "treble"
    assert definition.transpose_semitones == -7


def test_def_with_positive_transpose() -> None:
    registry, _ = _run('def h "Horn" transpose=+2')
    assert registry.instruments["h"].transpose_semitones == 2


def test_def_unquoted_name() -> None:
    registry, _ = _run("def vc Cello")
    assert registry.instruments["vc"].display_name == "Cello"


def test_def_without_name_uses_id() -> None:
    registry, _ = _run("def cb transpose=-12")
    definition = registry.instruments["cb"]
    assert definition.display_name == "cb"
    assert definition.transpose_semitones == -12


def test_invalid_transpose_is_reported() -> None:
    registry, reports = _run('def x "X" transpose=up')
    assert registry.instruments["x"].transpose_semitones == 0
    assert reports[0][0] == 1
    assert "transpose" in reports[0][1]


def test_terse_def() -> None:
    registry, _ = _run("d fl ww show")
    definition = registry.instruments["fl"]
    assert definition.display_name == "fl"
    assert definition.group_tag == "ww"
    assert definition.visibility_tag == "show"


def test_staff_context_defaults() -> None:
    registry, _ = _run('def p "Piano"')
    context = registry.context("p")
    assert context.last_duration == "4"
    assert context.last_octave == 4
    assert context.grid_resolution is None


def test_groups_in_order() -> None:
    registry, _ = _run(
        "\n".join(
            [
                'group "Woodwinds" {',
                '  def fl "Flute"',
                '  def ob "Oboe"',
                "}",
                'group "Strings" symbol=bracket {',
                '  def vn "Violin"',
                "}",
            ]
        )
    )
    assert [(g.name, g.instrument_ids) for g in registry.groups] == [
        ("Woodwinds", ["fl", "ob"]),
        ("Strings", ["vn"]),
    ]


def test_ungrouped_instruments_form_default_group() -> None:
    registry, _ = _run('def p "Piano"\ndef v "Voice"')
    assert [(g.name, g.instrument_ids) for g in registry.groups] == [("Ungrouped", ["p", "v"])]


def test_group_closed_at_end_of_text() -> None:
    registry, _ = _run('group "Brass" {\n def tp "Trumpet"')
    assert [g.name for g in registry.groups] == ["Brass"]


def test_empty_group_is_dropped() -> None:
    registry, _ = _run('group "Empty" {\n}\ndef p "Piano"')
    assert [g.name for g in registry.groups] == ["Ungrouped"]


def test_meta_block_brace_does_not_close_group() -> None:
    registry, _ = _run('group "Keys" {\nmeta {\n title: "T"\n}\ndef p "Piano"\n}')
    assert [(g.name, g.instrument_ids) for g in registry.groups] == [("Keys", ["p"])]


def test_redeclaration_replaces_definition_once_in_layout() -> None:
    registry, reports = _run('def p "Piano"\ndef p "Pianoforte"')
    assert registry.instruments["p"].display_name == "Pianoforte"
    assert registry.groups[0].instrument_ids == ["p"]
    assert reports and reports[0][0] == 2


def test_resolve_synthesizes_undeclared_instrument() -> None:
    registry, _ = _run("")
    definition = registry.resolve("oboe")
    assert definition.display_name == "oboe"
    assert definition.transpose_semitones == 0
    assert "oboe" in registry.instruments
    assert registry.groups == []


def test_single_line_group_declares_its_instruments() -> None:
    registry, _ = _run('group "S" { def vn "Violin" def va "Viola" }\ndef p "Piano"')
    assert registry.instruments["vn"].display_name == "Violin"
    assert [(g.name, g.instrument_ids) for g in registry.groups] == [
        ("S", ["vn", "va"]),
        ("Ungrouped", ["p"]),
    ]


def test_closing_brace_after_declaration_closes_group() -> None:
    registry, _ = _run('group "Brass" {\n def tp "Trumpet" }\ndef p "Piano"')
    assert [(g.name, g.instrument_ids) for g in registry.groups] == [
        ("Brass", ["tp"]),
        ("Ungrouped", ["p"]),
    ]


def test_single_line_meta_does_not_close_group() -> None:
    registry, _ = _run('group "Keys" {\nmeta { tempo: 80 }\ndef p "Piano"\n}')
    assert [(g.name, g.instrument_ids) for g in registry.groups] == [("Keys", ["p"])]

"""Unit tests for measure segmentation and staff-line parsing."""

from omniscore.config import CompilerConfig
from omniscore.segmenter import MeasureSegmenter, Segmentation, parse_assignment


def _segment(text: str) -> tuple[Segmentation, list[tuple[int, str, str]]]:
    reports: list[tuple[int, str, str]] = []
    lines = list(enumerate(text.split("\n"), start=1))
    segmentation = MeasureSegmenter(CompilerConfig()).run(
        lines, lambda line_number, message, severity: reports.append((line_number, message, severity))
    )
    return segmentation, reports


def test_parse_assignment_single_id() -> None:
    assert parse_assignment("p: c4 d4") == (["p"], "c4 d4")


def test_parse_assignment_broadcast() -> None:
    assert parse_assignment("vn1, vn2 ,va: r:1") == (["vn1", "vn2", "va"], "r:1")


def test_parse_assignment_rejects_other_lines() -> None:
    assert parse_assignment('def p "Piano"') is None


def test_long_and_short_headers() -> None:
    segmentation, _ = _segment("measure 1\np: c4\nmeasure 2..4\np: d4\nm 5\np: e4\nm 6-7\np: f4")
    ranges = [(b.start_measure, b.end_measure) for b in segmentation.blocks]
    assert ranges == [(1, 1), (2, 4), (5, 5), (6, 7)]
    assert [b.measure_count for b in segmentation.blocks] == [1, 3, 1, 2]


def test_block_lines_keep_line_numbers() -> None:
    segmentation, _ = _segment("measure 1\n  p: c4\n  q: d4")
    assert segmentation.blocks[0].lines == [(2, "p: c4"), (3, "q: d4")]


def test_default_tempo_and_time_signature() -> None:
    segmentation, _ = _segment("measure 1\np: c4")
    block = segmentation.blocks[0]
    assert block.tempo_bpm == 120.0
    assert block.time_signature == (4, 4)
    assert block.beat_seconds == 0.5
    assert block.measure_beats == 4.0


def test_global_directives_before_first_measure() -> None:
    segmentation, _ = _segment("tempo: 60\n3/4\nmeasure 1\np: c4")
    block = segmentation.blocks[0]
    assert block.tempo_bpm == 60.0
    assert block.time_signature == (3, 4)
    assert block.measure_beats == 3.0


def test_block_directive_persists_to_later_blocks() -> None:
    segmentation, _ = _segment("measure 1\n@ tempo:90 6/8\np: c4\nmeasure 2\np: d4")
    assert [(b.tempo_bpm, b.time_signature) for b in segmentation.blocks] == [
        (90.0, (6, 8)),
        (90.0, (6, 8)),
    ]
    assert segmentation.blocks[0].measure_beats == 3.0


def test_meta_block_sets_tempo_time_and_title() -> None:
    segmentation, _ = _segment(
        'meta {\n  title: "Night Music 3/4"\n  composer: "Anon"\n}\n'
        "meta { tempo: 80, time: 6/4 }\nmeasure 1\np: c4"
    )
    assert segmentation.metadata.title == "Night Music 3/4"
    assert segmentation.metadata.composer == "Anon"
    block = segmentation.blocks[0]
    assert block.tempo_bpm == 80.0
    assert block.time_signature == (6, 4)


def test_invalid_directives_are_reported_and_ignored() -> None:
    segmentation, reports = _segment("tempo: 0\ntime: 4/0\nmeasure 1\np: c4")
    block = segmentation.blocks[0]
    assert block.tempo_bpm == 120.0
    assert block.time_signature == (4, 4)
    assert [line for line, _, _ in reports] == [1, 2]


def test_reversed_range_is_single_measure() -> None:
    segmentation, reports = _segment("measure 4..2\np: c4")
    assert segmentation.blocks[0].measure_count == 1
    assert reports[0][2] == "warning"


def test_header_remainder_is_a_body_line() -> None:
    segmentation, _ = _segment("m 1 p: c4 d4")
    assert segmentation.blocks[0].lines == [(1, "p: c4 d4")]


def test_staff_line_before_first_measure_is_reported() -> None:
    segmentation, reports = _segment("p: c4\nmeasure 1\np: d4")
    assert len(segmentation.blocks[0].lines) == 1
    assert reports[0][0] == 1


def test_declarations_and_instructions_are_skipped_silently() -> None:
    _, reports = _segment('group "G" {\ndef p "Piano"\n}\nmeasure 1\ninstruction "pp"\np: c4')
    assert reports == []


def test_unrecognised_line_is_reported() -> None:
    _, reports = _segment("measure 1\n???")
    assert reports == [(2, "unrecognised line '???'", "warning")]

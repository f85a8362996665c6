"""Unit tests for the bracket-aware tokenizer."""

from omniscore.tokens import (
    AnnotationToken,
    BarlineToken,
    ChordToken,
    GridToken,
    PitchToken,
    RestToken,
    UnknownToken,
    decode_token,
    split_tokens,
    tokenize,
)


def test_split_on_whitespace() -> None:
    assert split_tokens("c4:4  d4\te4") == ["c4:4", "d4", "e4"]


def test_split_keeps_chord_together() -> None:
    assert split_tokens("[c4 e4 g4]:2 a4") == ["[c4 e4 g4]:2", "a4"]


def test_split_barline_is_own_token() -> None:
    assert split_tokens("c4|d4 |") == ["c4", "|", "d4", "|"]


def test_split_nested_brackets() -> None:
    assert split_tokens("[[c4 e4] g4] b4") == ["[[c4 e4] g4]", "b4"]


def test_split_unterminated_bracket_takes_rest_of_line() -> None:
    assert split_tokens("a4 [c4 e4 g4 | b4") == ["a4", "[c4 e4 g4 | b4"]


def test_split_stray_closing_bracket_does_not_go_negative() -> None:
    assert split_tokens("c4] [d4 f4] e4") == ["c4]", "[d4 f4]", "e4"]


def test_split_keeps_quoted_text_together() -> None:
    assert split_tokens('"molto rit." c4') == ['"molto rit."', "c4"]


def test_split_keeps_angle_annotation_together() -> None:
    assert split_tokens("<cresc. poco> c4 d4>") == ["<cresc. poco>", "c4", "d4>"]


def test_split_unclosed_annotation_mark_is_plain_text() -> None:
    assert split_tokens('< c4 "d4') == ["<", "c4", '"d4']


def test_decode_pitch_with_duration() -> None:
    assert decode_token("c4:4.") == PitchToken(text="c4", duration="4.")


def test_decode_pitch_without_duration() -> None:
    assert decode_token("f#5") == PitchToken(text="f#5", duration=None)


def test_decode_duration_with_trailing_marks() -> None:
    assert decode_token("c4:8>") == PitchToken(text="c4", duration="8")


def test_decode_unknown_duration_code_is_kept() -> None:
    assert decode_token("c4:q") == PitchToken(text="c4", duration="q")


def test_decode_rest() -> None:
    assert decode_token("r:2") == RestToken(duration="2")
    assert decode_token("r") == RestToken(duration=None)


def test_decode_chord() -> None:
    assert decode_token("[c4 e4 g4]:1.") == ChordToken(pitches=("c4", "e4", "g4"), duration="1.")


def test_decode_unterminated_chord() -> None:
    assert decode_token("[c4 e4") == ChordToken(pitches=("c4", "e4"), duration=None)


def test_decode_grid() -> None:
    assert decode_token("!16") == GridToken(duration="16")


def test_decode_barline() -> None:
    assert decode_token("|") == BarlineToken()


def test_decode_annotation() -> None:
    assert decode_token("<pp>") == AnnotationToken(text="<pp>")


def test_decode_stray_brace_is_unknown() -> None:
    assert decode_token("}") == UnknownToken(text="}")


def test_tokenize_mixed_line() -> None:
    tokens = tokenize("!8 c4 [e4 g4]:4 r | d4")
    assert tokens == [
        GridToken(duration="8"),
        PitchToken(text="c4"),
        ChordToken(pitches=("e4", "g4"), duration="4"),
        RestToken(),
        BarlineToken(),
        PitchToken(text="d4"),
    ]

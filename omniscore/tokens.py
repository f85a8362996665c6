"""Bracket-aware tokenizer and the token variants it decodes to."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Union

DURATION_CODE_REGEX: Final = re.compile(r"^[\d.]+")
GRID_REGEX: Final = re.compile(r"^!(\S+)$")

# Opening mark of an annotation token and the mark that closes it
ANNOTATION_CLOSERS: Final = {"<": ">", '"': '"'}


@dataclass(frozen=True)
class PitchToken:
    text: str
    duration: str | None = None


@dataclass(frozen=True)
class ChordToken:
    pitches: tuple[str, ...]
    duration: str | None = None


@dataclass(frozen=True)
class RestToken:
    duration: str | None = None


@dataclass(frozen=True)
class GridToken:
    duration: str


@dataclass(frozen=True)
class BarlineToken:
    pass


@dataclass(frozen=True)
class AnnotationToken:
    """Dynamics, hairpins or quoted text; takes no time."""

    text: str


@dataclass(frozen=True)
class UnknownToken:
    text: str


Token = Union[PitchToken, ChordToken, RestToken, GridToken, BarlineToken, AnnotationToken, UnknownToken]


def split_tokens(content: str) -> list[str]:
    """
    Split assignment content on whitespace, keeping ``[...]`` groups whole.

    Bracket depth is tracked as a counter and never goes below zero, so a
    stray ``]`` is kept as text and an unterminated ``[`` absorbs the rest of
    the line. A ``|`` outside brackets is always a token of its own.
    Quoted text and ``<...>`` annotations that start a token stay in one
    token up to their closing mark; without a closing mark they are
    ordinary characters.
    """
    tokens: list[str] = []
    current: list[str] = []
    depth = 0
    closer: str | None = None

    def flush() -> None:
        if current:
            tokens.append("".join(current))
            current.clear()

    for index, char in enumerate(content):
        if closer is not None:
            current.append(char)
            if char == closer:
                closer = None
            continue

        if not current and depth == 0 and char in ANNOTATION_CLOSERS:
            if ANNOTATION_CLOSERS[char] in content[index + 1:]:
                closer = ANNOTATION_CLOSERS[char]
                current.append(char)
                continue

        if char == "[":
            depth += 1
        elif char == "]" and depth > 0:
            depth -= 1

        if depth == 0 and char.isspace():
            flush()
        elif depth == 0 and char == "|":
            flush()
            tokens.append(char)
        else:
            current.append(char)

    flush()
    return tokens


def _split_duration(text: str) -> tuple[str, str | None]:
    """Split ``note:code`` into the note part and its duration code."""
    if ":" not in text:
        return text, None
    head, suffix = text.split(":", 1)
    if not suffix:
        return head, None
    match = DURATION_CODE_REGEX.match(suffix)
    return head, match.group(0) if match else suffix


def _decode_chord(text: str) -> ChordToken:
    close = text.rfind("]")
    if close == -1:
        inner, rest = text[1:], ""
    else:
        inner, rest = text[1:close], text[close + 1:]

    _, duration = _split_duration(rest)
    cleaned = [part.replace("[", "").replace("]", "") for part in inner.split()]
    return ChordToken(pitches=tuple(p for p in cleaned if p), duration=duration)


def decode_token(text: str) -> Token:
    """Classify one raw token into its variant."""
    if text == "|":
        return BarlineToken()

    grid = GRID_REGEX.match(text)
    if grid:
        return GridToken(duration=grid.group(1))

    if text.startswith(("<", '"')):
        return AnnotationToken(text=text)

    if text.startswith("["):
        return _decode_chord(text)

    note, duration = _split_duration(text)
    if note in ("r", "R"):
        return RestToken(duration=duration)

    if not note[:1].isalnum():
        return UnknownToken(text=text)

    return PitchToken(text=note, duration=duration)


def tokenize(content: str) -> list[Token]:
    return [decode_token(raw) for raw in split_tokens(content)]

"""Comment stripping, macro table and repeat-shorthand expansion."""

from __future__ import annotations

import logging
import re
from typing import Callable, Final

logger = logging.getLogger(__name__)

COMMENT_REGEX: Final = re.compile(r"%%.*")
LINE_COMMENT_REGEX: Final = re.compile(r"^\s*//.*")
MACRO_DEFINITION_REGEX: Final = re.compile(
    r"(?:\bmacro\s+|\$)(\w+)\s*=\s*\{([^}]*)\}",
    re.IGNORECASE,
)
MACRO_REFERENCE_REGEX: Final = re.compile(r"\$(\w+)(?:\+?(-?\d+))?")
REPEAT_REGEX: Final = re.compile(r"\{([^{}]*)\}\s*(?:x|\*)\s*(\d+)", re.IGNORECASE)
# Upper bound on the text one repeat group may expand to
MAX_REPEAT_LENGTH: Final = 100_000

# Callback signatures: (message, severity) and (line_number, message, severity)
Reporter = Callable[[str, str], None]
LineReporter = Callable[[int, str, str], None]


def strip_comments(text: str) -> str:
    """Remove ``%%`` trailing comments and ``//`` comment lines."""
    lines = []
    for line in text.split("\n"):
        line = COMMENT_REGEX.sub("", line)
        line = LINE_COMMENT_REGEX.sub("", line)
        lines.append(line.rstrip())
    return "\n".join(lines)


def expand_repeats(content: str, report: Reporter | None = None) -> str:
    """
    Expand ``{ body } x N`` and ``{ body } * N`` by literal repetition.

    Innermost groups are expanded first, then the outer ones, until no
    repeat group is left. A group whose expansion would exceed
    ``MAX_REPEAT_LENGTH`` characters is cut down to the count that fits
    and reported as a warning.
    """
    def repeat(match: re.Match[str]) -> str:
        body = match.group(1).strip()
        count = int(match.group(2))
        limit = MAX_REPEAT_LENGTH // (len(body) + 1)
        if count > limit:
            if report is not None:
                report(f"repeat count {count} is too large, using {limit}", "warning")
            count = limit
        return " ".join([body] * count)

    while True:
        expanded = REPEAT_REGEX.sub(repeat, content)
        if expanded == content:
            return expanded
        content = expanded


class MacroTable:
    """
    Named text fragments defined with ``macro NAME = { ... }`` or
    ``$NAME = { ... }`` and referenced as ``$NAME``.

    Substitution is a single pass: a macro body that mentions another macro
    is emitted as written. A ``+N``/``-N`` shift suffix on a reference is
    accepted but does not transpose anything.
    """

    def __init__(self) -> None:
        self.macros: dict[str, str] = {}

    def extract(self, text: str) -> str:
        """
        Record every macro definition in ``text`` and return the text with
        the definitions removed. Removed definitions leave their newlines
        behind so line numbers are unchanged.
        """
        def record(match: re.Match[str]) -> str:
            name, body = match.group(1), match.group(2)
            self.macros[name] = " ".join(body.split())
            logger.debug("macro %s = %r", name, self.macros[name])
            return "\n" * match.group(0).count("\n")

        return MACRO_DEFINITION_REGEX.sub(record, text)

    def expand(self, content: str, report: Reporter | None = None) -> str:
        def substitute(match: re.Match[str]) -> str:
            name, shift = match.group(1), match.group(2)
            if name not in self.macros:
                if report is not None:
                    report(f"undefined macro '${name}'", "warning")
                return ""
            if shift is not None and report is not None:
                report(f"shift suffix on '${name}' is ignored", "info")
            return self.macros[name]

        return MACRO_REFERENCE_REGEX.sub(substitute, content)

"""Line grammar for `.env` files.

Each line is tried against the assignment shape first and falls back to a
catch-all that captures the raw line, so parsing is total over any input:

  line       := assignment | unmatched
  assignment := ws key ws "=" ws value ws
  key        := [A-Za-z0-9_.-]+
  value      := double_quoted | single_quoted | unquoted

The value alternatives form an ordered choice: once one matches, the line is
committed to it. `A="x" y` is therefore unmatched rather than the unquoted
value `"x" y`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

from .diagnostics import UNMATCHED, Diagnostic, DiagnosticSink, log_diagnostic

_WS_CHARS = " \f\t\v\u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"

LEADING_WS = re.compile(f"[{_WS_CHARS}]*")
KEY = re.compile(r"[A-Za-z0-9_.-]+")
EQUALS = re.compile(f"[{_WS_CHARS}]*=[{_WS_CHARS}]*")
DOUBLE_QUOTED = re.compile(r'"((?:\\.|[^"\\])*)"', re.DOTALL)
SINGLE_QUOTED = re.compile(r"'((?:\\.|[^'\\])*)'", re.DOTALL)
# A CR left over from CRLF line endings counts as whitespace at the end of a line.
TRAILING_WS = re.compile(f"[{_WS_CHARS}\r]*")
BLANK = re.compile(f"[{_WS_CHARS}\r]*")
UNQUOTED = re.compile(f"[{_WS_CHARS}\r]*(.*?)[{_WS_CHARS}\r]*\\Z", re.DOTALL)
ESCAPE = re.compile(r"\\(.)", re.DOTALL)

_ESCAPES = {"n": "\n", "r": "\r"}


@dataclass(frozen=True)
class Assignment:
    key: str
    value: str
    line_number: int


@dataclass(frozen=True)
class UnmatchedLine:
    text: str
    line_number: int


Entry = Union[Assignment, UnmatchedLine]


def unescape(raw: str) -> str:
    """Expand backslash escapes of a double-quoted value.

    `\\n` and `\\r` become LF and CR; any other `\\X` collapses to `X`.
    """

    return ESCAPE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), raw)


def _match_value(line: str, pos: int) -> Optional[tuple[str, int]]:
    """Try the value alternatives in order; return (value, end) of the first hit."""

    m = DOUBLE_QUOTED.match(line, pos)
    if m:
        return unescape(m.group(1)), m.end()
    m = SINGLE_QUOTED.match(line, pos)
    if m:
        return m.group(1), m.end()
    # Unquoted always matches (possibly empty) and consumes the rest of the line.
    return UNQUOTED.match(line, pos).group(1), len(line)


def _match_assignment(line: str, line_number: int) -> Optional[Assignment]:
    pos = LEADING_WS.match(line).end()
    key = KEY.match(line, pos)
    if not key:
        return None
    eq = EQUALS.match(line, key.end())
    if not eq:
        return None
    value, pos = _match_value(line, eq.end())
    pos = TRAILING_WS.match(line, pos).end()
    if pos != len(line):
        return None
    return Assignment(key=key.group(0), value=value, line_number=line_number)


def parse_line(line: str, line_number: int) -> Optional[Entry]:
    """Parse a single line; blank lines give None."""

    if BLANK.fullmatch(line):
        return None
    return _match_assignment(line, line_number) or UnmatchedLine(text=line, line_number=line_number)


def parse_lines(source: Union[str, bytes]) -> List[Entry]:
    """Split `source` on LF and parse every line, in source order."""

    if isinstance(source, bytes):
        source = source.decode("utf-8")

    entries: List[Entry] = []
    for idx, line in enumerate(source.split("\n"), start=1):
        entry = parse_line(line, idx)
        if entry is not None:
            entries.append(entry)
    return entries


def parse(
    source: Union[str, bytes],
    *,
    debug: bool = False,
    sink: Optional[DiagnosticSink] = None,
) -> Dict[str, str]:
    """Parse `.env` content into a mapping.

    Later assignments to the same key win. Unmatched lines are dropped; with
    `debug` each one is reported to `sink` (default: the package logger).
    """

    return reduce_entries(parse_lines(source), debug=debug, sink=sink)


def reduce_entries(
    entries: Iterable[Entry],
    *,
    debug: bool = False,
    sink: Optional[DiagnosticSink] = None,
) -> Dict[str, str]:
    """Fold parsed entries into a mapping, reporting unmatched lines in debug."""

    emit = sink or log_diagnostic
    out: Dict[str, str] = {}
    for entry in entries:
        if isinstance(entry, Assignment):
            out[entry.key] = entry.value
        elif debug:
            emit(
                Diagnostic(
                    kind=UNMATCHED,
                    message=f"did not match key and value when parsing line {entry.line_number}: {entry.text}",
                    line_number=entry.line_number,
                )
            )
    return out

"""Diagnostic records emitted while parsing and merging env files."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .common.logging import get_logger

UNMATCHED = "unmatched"
NOT_OVERWRITTEN = "not_overwritten"


@dataclass(frozen=True)
class Diagnostic:
    """One non-fatal finding: a line that did not parse, or a key left alone."""

    kind: str
    message: str
    line_number: Optional[int] = None
    key: Optional[str] = None


DiagnosticSink = Callable[[Diagnostic], None]

_logger = get_logger(__name__)


def log_diagnostic(diagnostic: Diagnostic, *, source: str = "-") -> None:
    """Default sink: send the diagnostic to the package logger at DEBUG level."""

    line = diagnostic.line_number if diagnostic.line_number is not None else "-"
    _logger.debug(diagnostic.message, extra={"source": source, "line": line})


def logging_sink(source: str) -> DiagnosticSink:
    """A default sink whose records name `source` (usually the env file path)."""

    return functools.partial(log_diagnostic, source=source)


def collect() -> Tuple[List[Diagnostic], DiagnosticSink]:
    """Return a list and a sink that appends to it."""

    found: List[Diagnostic] = []
    return found, found.append

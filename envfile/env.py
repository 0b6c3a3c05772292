"""Load a `.env` file into an environment store.

Rules:
  - The file is parsed with `envfile.grammar.parse`
  - Keys already present in the store are never overwritten; presence decides,
    so an existing empty-string value is kept
  - Read failures (missing file, permissions, bad codec) and values the store
    rejects (e.g. an embedded NUL for `os.environ`) are returned, not raised,
    and leave the store untouched

The store defaults to `os.environ`; any `MutableMapping[str, str]` works, which
is how tests avoid touching the real process environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, MutableMapping, Optional, Union

from .common.io import read_text
from .common.logging import get_logger
from .diagnostics import NOT_OVERWRITTEN, Diagnostic, DiagnosticSink, log_diagnostic, logging_sink
from .grammar import parse

DEFAULT_FILENAME = ".env"
DEFAULT_ENCODING = "utf-8"

logger = get_logger(__name__)


@dataclass(frozen=True)
class LoadResult:
    """Outcome of `load`: either `parsed` or `error` is set, never both."""

    parsed: Optional[Dict[str, str]] = None
    error: Optional[Exception] = None
    skipped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


def default_env_path(root: Optional[Path] = None) -> Path:
    """`.env` under `root` (default: the current working directory)."""

    return (root or Path.cwd()) / DEFAULT_FILENAME


def merge(
    parsed: Mapping[str, str],
    environ: Optional[MutableMapping[str, str]] = None,
    *,
    debug: bool = False,
    sink: Optional[DiagnosticSink] = None,
) -> List[str]:
    """Copy keys absent from `environ` and return the keys that were skipped.

    All or nothing: if the store rejects a value with `ValueError`, the keys
    set so far are removed again before the error propagates.
    """

    target = os.environ if environ is None else environ
    emit = sink or log_diagnostic
    skipped: List[str] = []
    applied: List[str] = []
    for key, value in parsed.items():
        if key not in target:
            try:
                target[key] = value
            except ValueError:
                for done in applied:
                    del target[done]
                raise
            applied.append(key)
            continue
        skipped.append(key)
        if debug:
            emit(
                Diagnostic(
                    kind=NOT_OVERWRITTEN,
                    message=f'"{key}" is already defined in the environment and will not be overwritten',
                    key=key,
                )
            )
    return skipped


def load(
    path: Union[str, Path, None] = None,
    *,
    encoding: Optional[str] = None,
    debug: bool = False,
    environ: Optional[MutableMapping[str, str]] = None,
    sink: Optional[DiagnosticSink] = None,
) -> LoadResult:
    """Parse a `.env` file and merge it into `environ` without overriding."""

    env_path = Path(path) if path is not None else default_env_path()
    codec = encoding or DEFAULT_ENCODING
    log = logger.bind(source=str(env_path))

    try:
        text = read_text(env_path, encoding=codec)
    except (OSError, UnicodeError, LookupError) as exc:
        log.debug("could not read env file: %s", exc)
        return LoadResult(error=exc)

    emit = sink or logging_sink(str(env_path))
    parsed = parse(text, debug=debug, sink=emit)
    try:
        skipped = merge(parsed, environ, debug=debug, sink=emit)
    except ValueError as exc:
        log.debug("environment rejected a value: %s", exc)
        return LoadResult(error=exc)
    log.debug("loaded %d keys (%d already set)", len(parsed), len(skipped))
    return LoadResult(parsed=parsed, skipped=skipped)


config = load

"""Parse `.env` files and load them into the environment without overriding."""

from .diagnostics import Diagnostic, DiagnosticSink, collect, logging_sink
from .env import LoadResult, config, default_env_path, load, merge
from .grammar import Assignment, UnmatchedLine, parse, parse_lines, reduce_entries

__all__ = [
    "Assignment",
    "Diagnostic",
    "DiagnosticSink",
    "LoadResult",
    "UnmatchedLine",
    "collect",
    "config",
    "default_env_path",
    "load",
    "logging_sink",
    "merge",
    "parse",
    "parse_lines",
    "reduce_entries",
]

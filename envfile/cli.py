"""envfile CLI (inspect a `.env` file, or run a command with it loaded)."""

from __future__ import annotations

import argparse
import os
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .common.io import read_text, write_json
from .common.logging import setup_logging
from .diagnostics import logging_sink
from .env import DEFAULT_ENCODING, default_env_path, load
from .grammar import UnmatchedLine, parse_lines, reduce_entries

ENV_PATH_VAR = "ENVFILE_PATH"
ENV_ENCODING_VAR = "ENVFILE_ENCODING"
ENV_DEBUG_VAR = "ENVFILE_DEBUG"

EXIT_ERROR = 1
EXIT_UNMATCHED = 2

_TRUTHY = {"1", "true", "yes", "on"}


def _console(*, stderr: bool = False) -> Console:
    return Console(highlight=False, stderr=stderr)


def _error(message: str) -> int:
    _console(stderr=True).print(f"[red]error:[/red] {escape(message)}")
    return EXIT_ERROR


def _env_flag(name: str) -> bool:
    return (os.environ.get(name) or "").strip().lower() in _TRUTHY


def _resolve_path(path: Optional[str]) -> Path:
    if path:
        return Path(path)
    env_path = (os.environ.get(ENV_PATH_VAR) or "").strip()
    return Path(env_path) if env_path else default_env_path()


def _resolve_encoding(encoding: Optional[str]) -> str:
    return encoding or (os.environ.get(ENV_ENCODING_VAR) or "").strip() or DEFAULT_ENCODING


def _unmatched(entries: List[Any]) -> List[Dict[str, Any]]:
    return [
        {"line": entry.line_number, "text": entry.text}
        for entry in entries
        if isinstance(entry, UnmatchedLine)
    ]


def _render(console: Console, report: Dict[str, Any], *, title: str) -> None:
    values = Table(title=escape(title))
    values.add_column("key", style="bold")
    values.add_column("value")
    for key, value in report["parsed"].items():
        values.add_row(escape(key), escape(repr(value)))
    console.print(values)

    if report["unmatched"]:
        bad = Table(title="unmatched lines")
        bad.add_column("line", justify="right")
        bad.add_column("text")
        for item in report["unmatched"]:
            bad.add_row(str(item["line"]), escape(repr(item["text"])))
        console.print(bad)


def cmd_parse(args: argparse.Namespace) -> int:
    env_path = _resolve_path(args.path)
    encoding = _resolve_encoding(args.encoding)

    try:
        text = read_text(env_path, encoding=encoding)
    except (OSError, UnicodeError, LookupError) as exc:
        return _error(f"cannot read {env_path}: {exc}")

    entries = parse_lines(text)
    report = {
        "parsed": reduce_entries(entries, debug=args.debug, sink=logging_sink(str(env_path))),
        "unmatched": _unmatched(entries),
    }
    if args.json:
        write_json(Path(args.json), report)
    else:
        _render(_console(), report, title=str(env_path))

    if args.strict and report["unmatched"]:
        return EXIT_UNMATCHED
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        return _error("no command given")

    env_path = _resolve_path(args.path)
    result = load(env_path, encoding=_resolve_encoding(args.encoding), debug=args.debug)
    if not result.ok:
        return _error(f"cannot load {env_path}: {result.error}")

    try:
        return subprocess.call(command, env=os.environ.copy())
    except OSError as exc:
        return _error(f"cannot run {command[0]}: {exc}")


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--path", default=None, help=f"env file path (or set {ENV_PATH_VAR}; default ./.env)")
    p.add_argument("--encoding", default=None, help=f"file encoding (or set {ENV_ENCODING_VAR}; default utf-8)")
    p.add_argument("--debug", action="store_true", default=None, help=f"log unmatched lines and skipped keys (or set {ENV_DEBUG_VAR})")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="envfile")
    sub = p.add_subparsers(dest="cmd", required=True)

    pparse = sub.add_parser("parse", help="Parse an env file and show keys and unmatched lines")
    _add_source_args(pparse)
    pparse.add_argument("--json", default=None, help="write {parsed, unmatched} to this JSON path instead of printing")
    pparse.add_argument("--strict", action="store_true", help=f"exit {EXIT_UNMATCHED} if any line is unmatched")
    pparse.set_defaults(func=cmd_parse)

    prun = sub.add_parser("run", help="Load an env file into the environment and run a command")
    _add_source_args(prun)
    prun.add_argument("command", nargs=argparse.REMAINDER, help="command to run (after --)")
    prun.set_defaults(func=cmd_run)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug is None:
        args.debug = _env_flag(ENV_DEBUG_VAR)
    setup_logging(level="DEBUG" if args.debug else "WARNING")
    return args.func(args)

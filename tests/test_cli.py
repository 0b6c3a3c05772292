from __future__ import annotations

import json
import logging
import os
import sys

from envfile.cli import EXIT_ERROR, EXIT_UNMATCHED, build_parser, main


def test_parse_writes_json_report(env_file, tmp_path):
    path = env_file("A=1\nB='two'\nnope\n")
    out = tmp_path / "report" / "env.json"

    code = main(["parse", "--path", str(path), "--json", str(out)])

    assert code == 0
    assert json.loads(out.read_text(encoding="utf-8")) == {
        "parsed": {"A": "1", "B": "two"},
        "unmatched": [{"line": 3, "text": "nope"}],
    }


def test_parse_strict_fails_on_unmatched(env_file, tmp_path):
    path = env_file("A=1\nnope\n")
    code = main(["parse", "--path", str(path), "--strict", "--json", str(tmp_path / "out.json")])
    assert code == EXIT_UNMATCHED


def test_parse_strict_passes_on_clean_file(env_file, capsys):
    path = env_file("ALPHA=1\n")
    code = main(["parse", "--path", str(path), "--strict"])

    assert code == 0
    assert "ALPHA" in capsys.readouterr().out


def test_parse_missing_file(tmp_path, capsys):
    code = main(["parse", "--path", str(tmp_path / "missing.env")])

    captured = capsys.readouterr()
    assert code == EXIT_ERROR
    assert "cannot read" in captured.err
    assert captured.out == ""


def test_path_from_environment(env_file, tmp_path, monkeypatch):
    path = env_file("FROM_VAR=1\n", name="custom.env")
    monkeypatch.setenv("ENVFILE_PATH", str(path))
    out = tmp_path / "out.json"

    assert main(["parse", "--json", str(out)]) == 0
    assert json.loads(out.read_text(encoding="utf-8"))["parsed"] == {"FROM_VAR": "1"}


def test_run_passes_loaded_env_to_command(env_file, tmp_path, monkeypatch):
    monkeypatch.delenv("ENVFILE_CLI_VALUE", raising=False)
    path = env_file("ENVFILE_CLI_VALUE=hello\n")
    marker = tmp_path / "marker.txt"
    script = (
        "import os, pathlib, sys; "
        "pathlib.Path(sys.argv[1]).write_text(os.environ['ENVFILE_CLI_VALUE'])"
    )

    try:
        code = main(["run", "--path", str(path), "--", sys.executable, "-c", script, str(marker)])
    finally:
        os.environ.pop("ENVFILE_CLI_VALUE", None)

    assert code == 0
    assert marker.read_text() == "hello"


def test_run_propagates_exit_code(env_file):
    path = env_file("# nothing to load\n")
    code = main(["run", "--path", str(path), "--", sys.executable, "-c", "raise SystemExit(3)"])
    assert code == 3


def test_run_missing_file(tmp_path):
    code = main(["run", "--path", str(tmp_path / "missing.env"), "--", sys.executable, "-c", "pass"])
    assert code == EXIT_ERROR


def test_debug_flag_parses():
    parser = build_parser()
    args = parser.parse_args(["parse", "--debug"])
    assert args.cmd == "parse"
    assert args.debug is True


def test_run_missing_executable(env_file, capsys):
    path = env_file("# nothing to load\n")

    code = main(["run", "--path", str(path), "--", "envfile-no-such-command-xyz"])

    assert code == EXIT_ERROR
    assert "cannot run" in capsys.readouterr().err


def test_parse_reads_entries_once(env_file, tmp_path, monkeypatch):
    import envfile.cli as cli

    calls = []
    real_parse_lines = cli.parse_lines

    def counting_parse_lines(text):
        calls.append(text)
        return real_parse_lines(text)

    monkeypatch.setattr(cli, "parse_lines", counting_parse_lines)
    path = env_file("A=1\nnope\n")
    out = tmp_path / "out.json"

    assert main(["parse", "--path", str(path), "--json", str(out)]) == 0
    assert len(calls) == 1
    assert json.loads(out.read_text(encoding="utf-8"))["unmatched"] == [{"line": 2, "text": "nope"}]


def test_parse_debug_logs_unmatched_with_source(env_file, tmp_path, caplog, monkeypatch):
    import envfile.cli as cli

    # keep caplog attached to the root logger
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)
    path = env_file("A=1\nnope\n")
    caplog.set_level(logging.DEBUG, logger="envfile")

    assert main(["parse", "--path", str(path), "--debug", "--json", str(tmp_path / "out.json")]) == 0

    records = [r for r in caplog.records if "did not match" in r.getMessage()]
    assert len(records) == 1
    assert records[0].source == str(path)
    assert records[0].line == 2

"""Tests for the command-line entry point."""

import json
import sys

import pytest

from src.topo_map import cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep the CLI from writing into logs/ during tests."""
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


def run_cli(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["topo-map", *args])
    cli.main()


def test_export(monkeypatch, tmp_path, capsys, legacy_document):
    source = tmp_path / "network-l1.json"
    source.write_text(json.dumps(legacy_document), encoding="utf-8")
    output = tmp_path / "out.html"

    run_cli(monkeypatch, str(source), "--export", str(output), "--env-file", str(tmp_path / "none.env"))

    assert output.exists()
    printed = capsys.readouterr().out
    assert "4 nodes, 4 links" in printed
    assert "1 nodes and 2 links not drawn" in printed


def test_missing_file(monkeypatch, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        run_cli(monkeypatch, str(tmp_path / "nope.json"), "--env-file", str(tmp_path / "none.env"))

    assert exc_info.value.code == 1
    assert "Error:" in capsys.readouterr().err


def test_invalid_json(monkeypatch, tmp_path, capsys):
    source = tmp_path / "broken.json"
    source.write_text("{not json", encoding="utf-8")

    with pytest.raises(SystemExit) as exc_info:
        run_cli(monkeypatch, str(source), "--env-file", str(tmp_path / "none.env"))

    assert exc_info.value.code == 1
    assert "Failed to parse topology file" in capsys.readouterr().err

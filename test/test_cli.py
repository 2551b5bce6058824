import json
import pathlib
import sys
from unittest.mock import patch

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "src"))

import pytest

from hostevents import cli
from hostevents.errors import UpstreamFetchFailure
from hostevents.handlers import PULL_REQUEST, AffectedItem


def test_reads_event_from_input_env(monkeypatch, capsys):
    monkeypatch.setenv("INPUT_EVENT", json.dumps({"event_name": "pull_request", "event": {"number": 130}}))

    assert cli.main([]) == 0
    assert json.loads(capsys.readouterr().out) == [{"kind": "pull_request", "number": 130}]


@patch("hostevents.cli.process_event")
def test_event_file_token_is_substituted(mock_process, tmp_path, capsys):
    mock_process.return_value = [AffectedItem(PULL_REQUEST, 7), AffectedItem(PULL_REQUEST, 9)]
    event_file = tmp_path / "event.json"
    event_file.write_text(json.dumps({
        "event_name": "schedule",
        "token": "***",
        "repository": "acme/widgets",
        "event": {},
    }), encoding="utf-8")

    code = cli.main(["--github-token", "pat-123", "--event-payload", str(event_file)])

    assert code == 0
    event = mock_process.call_args.args[0]
    assert event.token == "pat-123"
    assert event.repository == "acme/widgets"
    out = json.loads(capsys.readouterr().out)
    assert [item["number"] for item in out] == [7, 9]


def test_event_file_without_token_prints_usage(tmp_path):
    event_file = tmp_path / "event.json"
    event_file.write_text("{}", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--event-payload", str(event_file)])
    assert excinfo.value.code == 2


def test_help_exits_with_usage():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["help"])
    assert excinfo.value.code == 2


def test_missing_input_prints_usage(monkeypatch):
    monkeypatch.delenv("INPUT_EVENT", raising=False)
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 2


def test_malformed_event_exits_nonzero(monkeypatch, capsys):
    monkeypatch.setenv("INPUT_EVENT", "{not json")
    assert cli.main([]) == 1
    assert "not valid JSON" in capsys.readouterr().err


@patch("hostevents.cli.process_event")
def test_upstream_failure_exits_nonzero(mock_process, monkeypatch, capsys):
    mock_process.side_effect = UpstreamFetchFailure("GET /pulls returned 500", status=500)
    monkeypatch.setenv("INPUT_EVENT", json.dumps({"event_name": "schedule", "token": "t", "repository": "a/b"}))

    assert cli.main([]) == 1
    assert "returned 500" in capsys.readouterr().err


def test_missing_event_file_exits_nonzero(tmp_path):
    assert cli.main(["--github-token", "t", "--event-payload", str(tmp_path / "nope.json")]) == 1


def test_unknown_log_level_does_not_break_logging(monkeypatch, capsys):
    monkeypatch.setenv("HOSTEVENTS_LOG_LEVEL", "BASIC_FORMAT")
    monkeypatch.setenv("INPUT_EVENT", json.dumps({"event_name": "issues", "event": {"issue": {"number": 3}}}))

    assert cli.main([]) == 0
    assert json.loads(capsys.readouterr().out) == [{"kind": "issue", "number": 3}]

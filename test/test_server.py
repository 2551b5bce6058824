import json
import pathlib
import sys
from unittest.mock import patch

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "src"))

import pytest
from fastapi.testclient import TestClient

import server
from hostevents.errors import ResolutionTimeout, UpstreamFetchFailure
from hostevents.handlers import PULL_REQUEST, AffectedItem


@pytest.fixture
def client():
    return TestClient(server.app)


def test_events_resolves_direct_pull_request(client):
    body = json.dumps({"event_name": "pull_request", "event": {"number": 130}})
    resp = client.post("/events", content=body, headers={"Content-Type": "application/json"})
    assert resp.status_code == 200
    assert resp.json() == {"items": [{"kind": "pull_request", "number": 130}]}


@pytest.mark.parametrize(
    "body,status",
    [
        ("{not json", 400),
        (json.dumps({"event_name": "cron"}), 422),
        (json.dumps({"event_name": "push", "event": {}}), 422),
        (json.dumps({"event_name": "issues", "event": {"issue": {}}}), 400),
    ],
)
def test_events_error_statuses(client, body, status):
    resp = client.post("/events", content=body, headers={"Content-Type": "application/json"})
    assert resp.status_code == status


@pytest.mark.parametrize(
    "error,status",
    [
        (UpstreamFetchFailure("GET /pulls returned 500", status=500), 502),
        (ResolutionTimeout("deadline of 600s exceeded"), 504),
    ],
)
def test_events_upstream_errors(client, error, status):
    body = json.dumps({"event_name": "schedule", "token": "t", "repository": "acme/widgets"})
    with patch("server.process_event", side_effect=error):
        resp = client.post("/events", content=body, headers={"Content-Type": "application/json"})
    assert resp.status_code == status


def test_github_webhook_uses_headers(client):
    payload = {
        "action": "completed",
        "repository": {"name": "widgets", "full_name": "acme/widgets", "owner": {"login": "acme"}},
        "workflow_run": {"head_sha": "sha2"},
    }
    with patch("server.process_event", return_value=[AffectedItem(PULL_REQUEST, 9)]) as mock_process:
        resp = client.post(
            "/github-webhook",
            json=payload,
            headers={"X-GitHub-Event": "workflow_run", "Authorization": "Bearer pat-123"},
        )

    assert resp.status_code == 200
    assert resp.json() == {"items": [{"kind": "pull_request", "number": 9}]}
    event = mock_process.call_args.args[0]
    assert event.event_name == "workflow_run"
    assert event.token == "pat-123"
    assert event.repository == "acme/widgets"


def test_github_webhook_requires_event_header(client):
    resp = client.post("/github-webhook", json={"number": 1})
    assert resp.status_code == 400


def test_events_rejects_invalid_utf8(client):
    body = b'{"event_name": "pull_request", "event": {"number": 1}, "x": "\xff\xfe"}'
    resp = client.post("/events", content=body, headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "body is not valid UTF-8"

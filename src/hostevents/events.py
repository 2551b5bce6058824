"""Parsing of GitHub Actions events and their webhook payloads."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Tuple, Union

from .errors import MalformedPayload, UnknownEventKind, UnsupportedPayloadType

SCHEDULE = "schedule"

# https://docs.github.com/en/webhooks/webhook-events-and-payloads
WEBHOOK_EVENT_NAMES = frozenset({
    "branch_protection_rule",
    "check_run",
    "check_suite",
    "commit_comment",
    "create",
    "delete",
    "deploy_key",
    "deployment",
    "deployment_status",
    "discussion",
    "discussion_comment",
    "fork",
    "github_app_authorization",
    "gollum",
    "installation",
    "installation_repositories",
    "issue_comment",
    "issues",
    "label",
    "marketplace_purchase",
    "member",
    "membership",
    "merge_group",
    "meta",
    "milestone",
    "org_block",
    "organization",
    "package",
    "page_build",
    "ping",
    "project",
    "project_card",
    "project_column",
    "public",
    "pull_request",
    "pull_request_review",
    "pull_request_review_comment",
    "pull_request_target",
    "push",
    "registry_package",
    "release",
    "repository",
    "repository_dispatch",
    "repository_vulnerability_alert",
    "secret_scanning_alert",
    "star",
    "status",
    "team",
    "team_add",
    "watch",
    "workflow_dispatch",
    "workflow_job",
    "workflow_run",
})


@dataclass
class ActionEvent:
    """One GitHub Actions event, shaped like the ``github`` context."""

    event_name: str
    event_payload: Dict[str, Any] = field(default_factory=dict)
    token: str | None = field(default=None, repr=False)
    repository: str | None = None


@dataclass(frozen=True)
class PullRequestPayload:
    number: int


@dataclass(frozen=True)
class IssuePayload:
    number: int


@dataclass(frozen=True)
class WorkflowRunPayload:
    owner: str
    name: str
    head_sha: str


@dataclass(frozen=True)
class StatusPayload:
    owner: str
    name: str
    sha: str


WebhookPayload = Union[PullRequestPayload, IssuePayload, WorkflowRunPayload, StatusPayload]


def _optional_str(data: Dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedPayload(f"field {key!r} must be a string")
    return value


def parse_event(raw: str) -> ActionEvent:
    """Decode the raw event text. The text holds the token, so it is never logged."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedPayload(f"event is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedPayload("event must be a JSON object")

    name = data.get("event_name")
    if not isinstance(name, str) or not name.strip():
        raise MalformedPayload("event is missing 'event_name'")

    payload = data.get("event")
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise MalformedPayload("field 'event' must be a JSON object")

    return ActionEvent(
        event_name=name.strip(),
        event_payload=payload,
        token=_optional_str(data, "token"),
        repository=_optional_str(data, "repository"),
    )


def split_repository(full_name: str | None) -> Tuple[str, str]:
    parts = (full_name or "").split("/")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise MalformedPayload(f"repository must look like 'owner/name', got {full_name!r}")
    return parts[0].strip(), parts[1].strip()


def _object(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    if not isinstance(value, dict):
        raise MalformedPayload(f"payload is missing object {key!r}")
    return value


def _positive_int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise MalformedPayload(f"payload field {key!r} must be a positive integer")
    return value


def _sha(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedPayload(f"payload field {key!r} must be a commit SHA")
    return value


def _repository(payload: Dict[str, Any]) -> Tuple[str, str]:
    repo = _object(payload, "repository")
    owner_obj = repo.get("owner")
    owner = owner_obj.get("login") if isinstance(owner_obj, dict) else None
    name = repo.get("name")
    if isinstance(owner, str) and owner and isinstance(name, str) and name:
        return owner, name

    full_name = repo.get("full_name")
    return split_repository(full_name if isinstance(full_name, str) else None)


def _pull_request_event(payload: Dict[str, Any]) -> PullRequestPayload:
    pr = payload.get("pull_request")
    if isinstance(pr, dict) and "number" in pr:
        return PullRequestPayload(_positive_int(pr, "number"))
    return PullRequestPayload(_positive_int(payload, "number"))


def _pull_request_review_event(payload: Dict[str, Any]) -> PullRequestPayload:
    return PullRequestPayload(_positive_int(_object(payload, "pull_request"), "number"))


def _issue_event(payload: Dict[str, Any]) -> IssuePayload:
    return IssuePayload(_positive_int(_object(payload, "issue"), "number"))


def _workflow_run_event(payload: Dict[str, Any]) -> WorkflowRunPayload:
    head_sha = _sha(_object(payload, "workflow_run"), "head_sha")
    owner, name = _repository(payload)
    return WorkflowRunPayload(owner=owner, name=name, head_sha=head_sha)


def _status_event(payload: Dict[str, Any]) -> StatusPayload:
    sha = _sha(payload, "sha")
    owner, name = _repository(payload)
    return StatusPayload(owner=owner, name=name, sha=sha)


_DECODERS: Dict[str, Callable[[Dict[str, Any]], WebhookPayload]] = {
    "pull_request": _pull_request_event,
    "pull_request_target": _pull_request_event,
    "pull_request_review": _pull_request_review_event,
    "pull_request_review_comment": _pull_request_review_event,
    "issues": _issue_event,
    "issue_comment": _issue_event,
    "workflow_run": _workflow_run_event,
    "status": _status_event,
}


def parse_webhook(kind: str, payload: Dict[str, Any] | None) -> WebhookPayload:
    """
    Decode ``payload`` into the typed variant for ``kind``.

    Kinds GitHub never delivers as webhooks raise ``UnsupportedPayloadType``;
    webhook kinds without a decoder raise ``UnknownEventKind``.
    """
    if kind not in WEBHOOK_EVENT_NAMES:
        raise UnsupportedPayloadType(kind)
    decoder = _DECODERS.get(kind)
    if decoder is None:
        raise UnknownEventKind(kind)
    if not isinstance(payload, dict):
        raise MalformedPayload(f"{kind} payload must be a JSON object")
    return decoder(payload)

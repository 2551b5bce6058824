"""Resolve a GitHub Actions event to the pull requests or issues it concerns."""
from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from .config import HostEventsConfig, load_config
from .errors import MalformedPayload
from .events import (
    SCHEDULE,
    ActionEvent,
    IssuePayload,
    PullRequestPayload,
    StatusPayload,
    WorkflowRunPayload,
    parse_webhook,
    split_repository,
)
from .github_api import Deadline, GitHubClient, PullRequestSummary

PULL_REQUEST = "pull_request"
ISSUE = "issue"

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AffectedItem:
    kind: str
    number: int

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "number": self.number}


def find_pull_request_by_sha(prs: Iterable[PullRequestSummary], sha: str) -> PullRequestSummary | None:
    # Several open PRs can share a head SHA; the first one in API order wins.
    for pr in prs:
        if pr.head_sha == sha:
            return pr
    return None


def _require_token(event: ActionEvent) -> str:
    if not event.token:
        raise MalformedPayload(f"'{event.event_name}' events need a token to query the GitHub API")
    return event.token


def _client_scope(event: ActionEvent, client, config: HostEventsConfig):
    token = _require_token(event)
    if client is not None:
        return nullcontext(client)
    return GitHubClient(
        token,
        api_url=config.api_url,
        per_page=config.per_page,
        request_timeout=config.request_timeout,
        deadline=Deadline(config.timeout_seconds),
    )


def process_cron_event(event: ActionEvent, *, client, config: HostEventsConfig, logger) -> List[AffectedItem]:
    logger.info("processing 'schedule' event")
    owner, name = split_repository(event.repository)

    with _client_scope(event, client, config) as gh:
        prs = gh.get_pull_requests(owner, name)

    logger.info("fetched %d prs", len(prs))
    items = [AffectedItem(PULL_REQUEST, pr.number) for pr in prs]
    logger.info("found prs %s", [item.number for item in items])
    return items


def process_head_sha_event(
    event: ActionEvent,
    owner: str,
    name: str,
    sha: str,
    *,
    client,
    config: HostEventsConfig,
    logger,
) -> List[AffectedItem]:
    logger.info("processing '%s' event", event.event_name)

    with _client_scope(event, client, config) as gh:
        prs = gh.get_pull_requests(owner, name)

    logger.info("fetched %d prs", len(prs))
    pr = find_pull_request_by_sha(prs, sha)
    if pr is None:
        logger.info("no pr found with the head sha %s", sha)
        return []

    logger.info("found pr %d", pr.number)
    return [AffectedItem(PULL_REQUEST, pr.number)]


def process_event(
    event: ActionEvent,
    *,
    client=None,
    config: HostEventsConfig | None = None,
    logger: logging.Logger | None = None,
) -> List[AffectedItem]:
    """
    Return the pull requests or issues ``event`` concerns.

    ``client`` must provide ``get_pull_requests(owner, name)``; when omitted a
    ``GitHubClient`` with its own deadline is built from the event token.
    Only ``schedule``, ``workflow_run`` and ``status`` events call the API.
    """
    config = config or load_config()
    logger = logger or _log

    # "schedule" is a workflow trigger with no webhook counterpart, so its
    # payload is never decoded.
    if event.event_name == SCHEDULE:
        return process_cron_event(event, client=client, config=config, logger=logger)

    payload = parse_webhook(event.event_name, event.event_payload)

    match payload:
        case PullRequestPayload(number=number):
            logger.info("processing '%s' event", event.event_name)
            logger.info("found pr %d", number)
            return [AffectedItem(PULL_REQUEST, number)]
        case IssuePayload(number=number):
            logger.info("processing '%s' event", event.event_name)
            logger.info("found issue %d", number)
            return [AffectedItem(ISSUE, number)]
        case WorkflowRunPayload(owner=owner, name=name, head_sha=sha) | StatusPayload(owner=owner, name=name, sha=sha):
            return process_head_sha_event(
                event, owner, name, sha,
                client=client, config=config, logger=logger,
            )
        case _:
            raise TypeError(f"unhandled payload type: {type(payload).__name__}")

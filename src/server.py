import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
import uvicorn

from hostevents.config import load_config
from hostevents.errors import (
    EventHandlerError,
    MalformedPayload,
    ResolutionTimeout,
    UnknownEventKind,
    UnsupportedPayloadType,
    UpstreamFetchFailure,
)
from hostevents.events import ActionEvent, parse_event
from hostevents.handlers import process_event

logger = logging.getLogger("hostevents.server")

app = FastAPI()


def _status_for(exc: EventHandlerError) -> int:
    if isinstance(exc, MalformedPayload):
        return 400
    if isinstance(exc, (UnsupportedPayloadType, UnknownEventKind)):
        return 422
    if isinstance(exc, ResolutionTimeout):
        return 504
    if isinstance(exc, UpstreamFetchFailure):
        return 502
    return 500


def _resolve(event: ActionEvent):
    # a fresh client and deadline per request; nothing is shared between events
    try:
        items = process_event(event, config=load_config(), logger=logger)
    except EventHandlerError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return {"items": [item.to_dict() for item in items]}


@app.post("/events")
async def resolve_action_event(request: Request):
    try:
        raw = (await request.body()).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="body is not valid UTF-8") from exc
    try:
        event = parse_event(raw)
    except MalformedPayload as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return await run_in_threadpool(_resolve, event)


@app.post("/github-webhook")
async def github_webhook(request: Request):
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="body is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="body must be a JSON object")

    event_name = request.headers.get("x-github-event")
    if not event_name:
        raise HTTPException(status_code=400, detail="missing X-GitHub-Event header")

    auth = request.headers.get("authorization", "")
    token = auth[len("Bearer "):].strip() if auth.lower().startswith("bearer ") else None

    repo = payload.get("repository")
    full_name = repo.get("full_name") if isinstance(repo, dict) else None

    event = ActionEvent(
        event_name=event_name,
        event_payload=payload,
        token=token or None,
        repository=full_name if isinstance(full_name, str) else None,
    )
    return await run_in_threadpool(_resolve, event)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)

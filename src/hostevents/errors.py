"""Errors raised while resolving a GitHub Actions event."""
from __future__ import annotations


class EventHandlerError(RuntimeError):
    pass


class MalformedPayload(EventHandlerError):
    """The raw event is not valid JSON or lacks a field its kind requires."""


class UnsupportedPayloadType(EventHandlerError):
    """The declared kind is not a webhook event the payload decoder knows."""

    def __init__(self, kind: str):
        super().__init__(f"unsupported payload type: {kind!r}")
        self.kind = kind


class UnknownEventKind(EventHandlerError):
    """The kind is a known webhook event but nothing resolves it to PRs/issues."""

    def __init__(self, kind: str):
        super().__init__(f"unknown event kind: {kind!r}")
        self.kind = kind


class UpstreamFetchFailure(EventHandlerError):
    def __init__(self, message: str, *, status: int | None = None, url: str | None = None):
        super().__init__(message)
        self.status = status
        self.url = url


class ResolutionTimeout(EventHandlerError, TimeoutError):
    """The run deadline elapsed before every page was fetched."""

"""
Request-level failures.

Record-level problems never surface as exceptions; they degrade to defaults
inside the normalizer. Only configuration and collaborator failures reach
the caller, each carrying a machine-readable reason and a status class.
"""

from __future__ import annotations

from typing import Any


class RenoHubError(Exception):
    """Base class for failures that abort a whole request."""

    reason: str = "internal"
    status_code: int = 500

    def __init__(self, detail: str, **context: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.context = context

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.reason, "details": self.detail}
        if self.context:
            payload.update(self.context)
        return payload


class ConfigurationError(RenoHubError):
    """A required identifier or credential is missing."""

    reason = "configuration"
    status_code = 500

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            f"Missing required settings: {', '.join(self.missing)}",
            missing=self.missing,
        )


class UpstreamError(RenoHubError):
    """The record store or text-generation service failed."""

    reason = "upstream"
    status_code = 502

    def __init__(self, service: str, detail: str, upstream_status: int | None = None) -> None:
        self.service = service
        self.upstream_status = upstream_status
        super().__init__(
            f"{service}: {detail}",
            service=service,
            upstream_status=upstream_status,
        )


class InvalidRequestError(RenoHubError):
    """The caller asked for something the hub does not do."""

    reason = "invalid_request"
    status_code = 400

"""Result envelopes and exceptions for Studio API calls.

This module provides:
- Ok, ApiError, NetworkError: Variants of ApiResult, one per call outcome
- AUTH_REQUIRED_CODES: Result codes meaning the session must be renewed
- StudioError and subclasses: Raised when a result cannot be used
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NoReturn

# Studio answers with one of these codes when the auth token is missing,
# expired or revoked
AUTH_REQUIRED_CODES = frozenset({1, 10, 17, 18, 19})

# Code used for aggregated batch failures
AGGREGATE_FAILURE_CODE = -1


class StudioError(Exception):
    """Base exception for studiohelper errors."""

    def __init__(self, message: str, result: ApiResult | None = None) -> None:
        super().__init__(message)
        self.result = result

    @property
    def code(self) -> int | None:
        """Get the remote result code, if the error carries one."""
        if isinstance(self.result, ApiError):
            return self.result.code
        return None


class AuthRequiredError(StudioError):
    """Session is not authenticated and could not be renewed."""


class RemoteRejectedError(StudioError):
    """Studio answered with a non-ok status."""


class StudioNetworkError(StudioError):
    """Transport failure, no remote status available."""


class TransferIncompleteError(StudioError):
    """Begin call did not return an upload token."""


class LocalIOError(StudioError):
    """Local file or folder could not be read."""


@dataclass(frozen=True)
class Ok:
    """Successful call."""

    result: Any = None
    code: int = 0

    @property
    def status(self) -> str:
        return "ok"

    def unwrap(self) -> Any:
        """Return the result payload."""
        return self.result

    def to_envelope(self) -> dict[str, Any]:
        """Render as the {status, code, result} wire envelope."""
        return {"status": self.status, "code": self.code, "result": self.result}


@dataclass(frozen=True)
class ApiError:
    """Studio answered with a non-ok status."""

    code: int
    result: Any = None

    @property
    def status(self) -> str:
        return "error"

    @property
    def needs_auth(self) -> bool:
        """Check if this error asks for a new login."""
        return self.code in AUTH_REQUIRED_CODES

    @property
    def message(self) -> str:
        """Get a human-readable message for logging."""
        if isinstance(self.result, str):
            return self.result
        return f"Studio error {self.code}: {self.result!r}"

    def unwrap(self) -> NoReturn:
        """Raise the exception matching this error."""
        if self.needs_auth:
            raise AuthRequiredError(self.message, self)
        raise RemoteRejectedError(self.message, self)

    def to_envelope(self) -> dict[str, Any]:
        """Render as the {status, code, result} wire envelope."""
        return {"status": self.status, "code": self.code, "result": self.result}


@dataclass(frozen=True)
class NetworkError:
    """Request never reached Studio or the connection broke."""

    cause: BaseException

    @property
    def status(self) -> str:
        return "networkError"

    @property
    def message(self) -> str:
        return f"Network error: {self.cause}"

    def unwrap(self) -> NoReturn:
        """Raise StudioNetworkError chained to the transport error."""
        raise StudioNetworkError(self.message, self) from self.cause

    def to_envelope(self) -> dict[str, Any]:
        """Render as the {status, result} network error envelope."""
        return {"status": self.status, "code": None, "result": str(self.cause)}


ApiResult = Ok | ApiError | NetworkError


def aggregate_failure() -> ApiError:
    """Build the single failure result reported for a failed batch."""
    return ApiError(code=AGGREGATE_FAILURE_CODE, result=False)


def from_envelope(data: Any) -> ApiResult:
    """Build an ApiResult from a decoded {status, code, result} body.

    Bodies that are not envelopes become ApiError with the aggregate code.
    """
    if not isinstance(data, dict) or "status" not in data:
        return ApiError(code=AGGREGATE_FAILURE_CODE, result=data)
    code = data.get("code")
    try:
        code = int(code) if code is not None else 0
    except (TypeError, ValueError):
        code = AGGREGATE_FAILURE_CODE
    if data["status"] == "ok":
        return Ok(result=data.get("result"), code=code)
    return ApiError(code=code, result=data.get("result"))

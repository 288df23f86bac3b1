"""Normalized error shape for every failed BIND API call."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

HTTP_ERROR = "HTTP_ERROR"
TIMEOUT = "TIMEOUT"
NETWORK_ERROR = "NETWORK_ERROR"
INVALID_RESPONSE = "INVALID_RESPONSE"
INVALID_LOGIN_RESPONSE = "INVALID_LOGIN_RESPONSE"

# Status recorded when no HTTP response was obtained.
NO_STATUS = 0


@dataclass(frozen=True)
class ApiErrorInfo:
    """Plain value describing one failed call."""

    status_code: int
    error_code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


class BindAPIError(Exception):
    """Raised for every failed call; wraps an :class:`ApiErrorInfo`."""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.info = ApiErrorInfo(
            status_code=status_code,
            error_code=error_code,
            message=message,
            details=dict(details or {}),
        )
        super().__init__(f"[{error_code}] {message}")

    @classmethod
    def from_info(cls, info: ApiErrorInfo) -> "BindAPIError":
        return cls(info.status_code, info.error_code, info.message, info.details)

    @property
    def status_code(self) -> int:
        return self.info.status_code

    @property
    def error_code(self) -> str:
        return self.info.error_code

    @property
    def message(self) -> str:
        return self.info.message

    @property
    def details(self) -> Dict[str, Any]:
        return self.info.details


class BindTransportError(BindAPIError):
    """The call never produced an HTTP response (timeout, DNS, refused connection)."""


class BindAuthenticationError(BindAPIError):
    """The login exchange was rejected or could not complete."""


def _status_text(response: httpx.Response) -> str:
    return response.reason_phrase or f"HTTP {response.status_code}"


def normalize_http_error(response: httpx.Response) -> BindAPIError:
    """Build the error for a non-2xx response.

    Looks for ``{"error": {"code", "message", "details"}}`` in the body and falls
    back to ``HTTP_ERROR`` with the status text when the body is not JSON or the
    error object is incomplete.
    """
    status_text = _status_text(response)
    try:
        payload = response.json()
    except ValueError:
        payload = None

    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict) or not isinstance(error.get("code"), str) or not error["code"]:
        return BindAPIError(response.status_code, HTTP_ERROR, status_text)

    message = error.get("message")
    details = error.get("details")
    return BindAPIError(
        response.status_code,
        error["code"],
        message if isinstance(message, str) and message else status_text,
        details if isinstance(details, dict) else {},
    )


def normalize_transport_error(exc: BaseException) -> BindTransportError:
    """Build the error for a failure that happened before any response arrived."""
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        code = TIMEOUT
        message = str(exc) or "Request timed out"
    else:
        code = NETWORK_ERROR
        message = str(exc) or exc.__class__.__name__
    return BindTransportError(NO_STATUS, code, message)

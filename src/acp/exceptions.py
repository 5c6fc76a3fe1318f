"""ACP exception taxonomy.

Every error raised by the SDK is an ACPError tagged with exactly one
ErrorKind. The set of kinds is closed, so callers can either catch the
concrete class or switch on ``error.kind``:

    try:
        await client.request("POST", "/checkout_sessions", body)
    except ACPError as e:
        match e.kind:
            case ErrorKind.RATE_LIMIT:
                ...
            case ErrorKind.CONNECTION:
                ...

Concrete classes derive directly from ACPError; there are no deeper chains.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of error kinds surfaced by the SDK."""

    AUTHENTICATION = "authentication_error"
    PERMISSION = "permission_error"
    NOT_FOUND = "not_found_error"
    INVALID_REQUEST = "invalid_request_error"
    RATE_LIMIT = "rate_limit_error"
    API = "api_error"
    CONNECTION = "connection_error"
    SIGNATURE_VERIFICATION = "signature_verification_error"


class VerificationFailure(str, Enum):
    """Why a webhook failed verification."""

    MALFORMED_HEADER = "malformed_header"
    STALE_EVENT = "stale_event"
    SIGNATURE_MISMATCH = "signature_mismatch"
    PAYLOAD_DECODE_ERROR = "payload_decode_error"


class ACPError(Exception):
    """Base exception for all ACP errors.

    Attributes:
        message: Human-readable error description.
        kind: The ErrorKind tag for this error.
        code: Machine-readable error code (from the server when available).
        status_code: HTTP status, or 0 when no response was received.
        param: Offending request parameter, when the server names one.
        request_id: Server correlation id, falling back to the local one.
    """

    kind: ErrorKind = ErrorKind.API
    code: str = "unknown_error"
    status_code: int = 0

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        param: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.param = param
        self.request_id = request_id
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, code={self.code!r}, "
            f"status_code={self.status_code}, request_id={self.request_id!r})"
        )

    def to_dict(self) -> dict[str, object]:
        """Convert exception to the wire error envelope."""
        error: dict[str, object] = {
            "type": self.kind.value,
            "code": self.code,
            "message": self.message,
        }
        if self.param is not None:
            error["param"] = self.param
        return {"error": error}


class AuthenticationError(ACPError):
    """Missing or invalid API credentials (401)."""

    kind = ErrorKind.AUTHENTICATION
    code = "authentication_required"
    status_code = 401


class PermissionDeniedError(ACPError):
    """Credentials are valid but lack access to the resource (403)."""

    kind = ErrorKind.PERMISSION
    code = "permission_denied"
    status_code = 403


class NotFoundError(ACPError):
    """Requested resource does not exist (404)."""

    kind = ErrorKind.NOT_FOUND
    code = "resource_not_found"
    status_code = 404


class InvalidRequestError(ACPError):
    """Request was rejected as invalid (400 and other 4xx).

    ``param`` names the offending field when the server reports it.
    """

    kind = ErrorKind.INVALID_REQUEST
    code = "invalid_request"
    status_code = 400


class RateLimitError(ACPError):
    """Too many requests (429).

    Attributes:
        retry_after: Seconds the server asked the client to wait, if sent.
    """

    kind = ErrorKind.RATE_LIMIT
    code = "rate_limit_exceeded"
    status_code = 429

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: float | None = None,
        **kwargs: Any,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message, **kwargs)


class APIError(ACPError):
    """Server-side failure (5xx) or an unusable response."""

    kind = ErrorKind.API
    code = "internal_error"
    status_code = 500


class APIConnectionError(ACPError):
    """No usable response: network failure, timeout, or exhausted retries."""

    kind = ErrorKind.CONNECTION
    code = "network_error"
    status_code = 0


class SignatureVerificationError(ACPError):
    """Webhook signature verification failed.

    Attributes:
        reason: Which verification stage rejected the payload.
    """

    kind = ErrorKind.SIGNATURE_VERIFICATION
    code = "invalid_signature"
    status_code = 400

    def __init__(self, message: str, reason: VerificationFailure) -> None:
        self.reason = reason
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        result = super().to_dict()
        result["error"]["reason"] = self.reason.value  # type: ignore[index]
        return result


def error_from_response(
    status_code: int,
    body: Any,
    request_id: str | None = None,
    retry_after: float | None = None,
) -> ACPError:
    """Build the classified error for a non-2xx response.

    Args:
        status_code: HTTP status of the response.
        body: Decoded JSON body; either ``{"error": {...}}`` or the bare error.
        request_id: Correlation id to attach to the error.
        retry_after: Parsed Retry-After hint, kept on RateLimitError.

    Returns:
        The ACPError subclass matching the status.
    """
    error = body.get("error", body) if isinstance(body, dict) else {}
    if not isinstance(error, dict):
        error = {}
    message = error.get("message") or f"Request failed with status {status_code}"
    code = error.get("code")
    param = error.get("param")

    if status_code == 401:
        return AuthenticationError(message, code=code, request_id=request_id)
    if status_code == 403:
        return PermissionDeniedError(message, code=code, request_id=request_id)
    if status_code == 404:
        return NotFoundError(message, code=code, request_id=request_id)
    if status_code == 429:
        return RateLimitError(
            message, retry_after=retry_after, code=code, request_id=request_id
        )
    if 400 <= status_code < 500:
        return InvalidRequestError(
            message, code=code, status_code=status_code, param=param, request_id=request_id
        )
    return APIError(message, code=code, status_code=status_code, request_id=request_id)


__all__ = [
    "ACPError",
    "APIConnectionError",
    "APIError",
    "AuthenticationError",
    "ErrorKind",
    "InvalidRequestError",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitError",
    "SignatureVerificationError",
    "VerificationFailure",
    "error_from_response",
]

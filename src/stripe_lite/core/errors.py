"""
Typed error taxonomy and the classifier that maps API responses onto it.
"""

from __future__ import annotations

import enum
import json
from typing import Any, Dict, Optional

__all__ = [
    "APIConnectionError",
    "APIError",
    "AuthenticationError",
    "CardError",
    "DecodingError",
    "ErrorKind",
    "InvalidRequestError",
    "NotFoundError",
    "StripeError",
    "classify_error",
]


class ErrorKind(str, enum.Enum):
    CARD = "card_error"
    INVALID_REQUEST = "invalid_request_error"
    AUTHENTICATION = "authentication_error"
    NOT_FOUND = "not_found"
    API_CONNECTION = "api_connection_error"
    API = "api_error"
    DECODING = "decoding_error"
    CONFIG = "config_error"


class StripeError(Exception):
    """Base class for every error raised by the client."""

    kind: ErrorKind = ErrorKind.API
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        http_status: Optional[int] = None,
        http_body: Optional[str] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status
        self.http_body = http_body
        self.json_body = json_body

    def __str__(self) -> str:
        if self.http_status is None:
            return self.message
        return f"({self.http_status}) {self.message}"


class CardError(StripeError):
    """The card was rejected; ``param`` names the offending card field."""

    kind = ErrorKind.CARD

    def __init__(
        self,
        message: str,
        *,
        param: Optional[str] = None,
        code: Optional[str] = None,
        decline_code: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.param = param
        self.code = code
        self.decline_code = decline_code


class InvalidRequestError(StripeError):
    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str, *, param: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.param = param


class AuthenticationError(StripeError):
    kind = ErrorKind.AUTHENTICATION


class NotFoundError(StripeError):
    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str,
        *,
        requested_id: Optional[str] = None,
        param: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.requested_id = requested_id
        self.param = param


class APIConnectionError(StripeError):
    """The request never produced an HTTP response."""

    kind = ErrorKind.API_CONNECTION
    retryable = True


class APIError(StripeError):
    kind = ErrorKind.API

    def __init__(self, message: str, *, retryable: bool = False, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retryable = retryable


class DecodingError(StripeError):
    """A response did not have the shape expected for its object type."""

    kind = ErrorKind.DECODING


def _parse_error_body(body: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(body)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def classify_error(
    status: int,
    body: str,
    *,
    requested_id: Optional[str] = None,
) -> StripeError:
    """
    Map a non-2xx response to exactly one :class:`StripeError`.

    The error is returned rather than raised so callers decide where the
    traceback starts.
    """
    json_body = _parse_error_body(body)
    error: Dict[str, Any] = {}
    if json_body is not None and isinstance(json_body.get("error"), dict):
        error = json_body["error"]

    error_type = error.get("type")
    message = error.get("message") or f"Unexpected response from the API: {body!r}"
    param = error.get("param")
    common = {"http_status": status, "http_body": body, "json_body": json_body}

    if status == 401:
        return AuthenticationError(message, **common)
    if status == 404:
        return NotFoundError(message, requested_id=requested_id, param=param, **common)
    if status in (400, 402) and error_type == "card_error":
        return CardError(
            message,
            param=param,
            code=error.get("code"),
            decline_code=error.get("decline_code"),
            **common,
        )
    if status == 400 and error_type == "invalid_request_error":
        return InvalidRequestError(message, param=param, **common)

    retryable = status == 429 or status >= 500
    return APIError(message, retryable=retryable, **common)

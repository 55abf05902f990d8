from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Type, Union

from django.core.exceptions import (
    PermissionDenied as DjangoPermissionDenied,
    ValidationError as DjangoValidationError,
)
from django.db import DatabaseError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    AuthenticationFailed,
    MethodNotAllowed,
    NotAuthenticated,
    NotFound,
    ParseError,
    PermissionDenied,
    Throttled,
    UnsupportedMediaType,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from apps.api.utils import error_response
from apps.common import get_logger

logger = get_logger(__name__).bind(component="api", layer="exception")

GENERIC_SERVER_MESSAGE = "Something went wrong"

# Checked in order; the first matching class decides the code and fallback message.
DRF_EXCEPTION_CODES: Sequence[Tuple[Tuple[Type[Exception], ...], str, str]] = (
    ((ValidationError,), "VALIDATION_ERROR", "Validation failed"),
    ((ParseError,), "VALIDATION_ERROR", "Malformed request"),
    ((AuthenticationFailed,), "UNAUTHORIZED", "Authentication failed"),
    ((NotAuthenticated,), "UNAUTHORIZED", "Authentication required"),
    (
        (PermissionDenied, DjangoPermissionDenied),
        "FORBIDDEN",
        "You do not have permission to perform this action",
    ),
    ((NotFound, Http404), "NOT_FOUND", "Resource not found"),
    ((MethodNotAllowed,), "METHOD_NOT_ALLOWED", "Method not allowed"),
    ((UnsupportedMediaType,), "UNSUPPORTED_MEDIA_TYPE", "Unsupported media type"),
    ((Throttled,), "TOO_MANY_REQUESTS", "Request was throttled"),
)

# Payload details are only echoed back for these codes.
DETAILED_CODES = frozenset({"VALIDATION_ERROR"})


class ApplicationError(Exception):
    """
    Domain-level application error meant to be raised from services or views.

    Subclasses set ``default_code``, ``default_message`` and ``default_status``
    so call sites only pass what varies. A subclass with ``retry_after`` set
    tells clients, through the ``Retry-After`` header, how many seconds to wait
    before the same request is worth sending again.
    """

    default_code: str = "SERVER_ERROR"
    default_message: str = GENERIC_SERVER_MESSAGE
    default_status: Optional[int] = None
    retry_after: Optional[int] = None

    def __init__(
        self,
        code: Optional[str] = None,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
        extra: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message or self.default_message
        super().__init__(self.message)
        self.status_code = status_code if status_code is not None else self.default_status
        self.details = details
        self.hint = hint
        self.extra = extra
        self.headers = dict(headers) if headers else {}
        if self.retry_after is not None:
            self.headers.setdefault("Retry-After", self.retry_after)

    def to_response(self) -> Response:
        return error_response(
            self.code,
            self.message,
            self.details,
            http_status=self.status_code,
            hint=self.hint,
            extra=self.extra,
            headers=self.headers or None,
        )


def global_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Render every error raised inside a DRF view as the ``{"error": {...}}`` envelope."""

    log = _bind_logger(context)

    if isinstance(exc, ApplicationError):
        response = exc.to_response()
        if response.status_code >= 500:
            log.warning("Application error", code=exc.code, status=response.status_code)
        else:
            log.info("Application error", code=exc.code, status=response.status_code)
        return response

    if isinstance(exc, DatabaseError):
        # A store outage that no service translated; the request may succeed later.
        log.error("Database error reached the API layer", error=str(exc))
        return error_response(
            "SERVICE_UNAVAILABLE",
            "Service temporarily unavailable",
            http_status=status.HTTP_503_SERVICE_UNAVAILABLE,
            extra={"retryable": True},
        )

    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(_django_validation_detail(exc))

    response = drf_exception_handler(exc, context)
    if response is None:
        log.exception("Unhandled exception bubbled to global handler")
        return error_response(
            "SERVER_ERROR",
            GENERIC_SERVER_MESSAGE,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return _convert_drf_response(exc, response, log)


def _bind_logger(context: Dict[str, Any]):
    log = logger
    view = context.get("view")
    if view is not None:
        log = log.bind(view=type(view).__name__)
    request = context.get("request")
    if request is not None:
        log = log.bind(
            method=getattr(request, "method", None),
            path=getattr(request, "path", None),
        )
    return log


def _convert_drf_response(exc: Exception, response: Response, log) -> Response:
    status_code = response.status_code
    payload = response.data
    code, fallback = _classify(exc, status_code)

    details = payload if code in DETAILED_CODES else None
    hint = None
    if isinstance(exc, Throttled) and exc.wait is not None:
        details = {"retryAfter": exc.wait}
        hint = "Wait before retrying this request."

    message = GENERIC_SERVER_MESSAGE if status_code >= 500 else _message_from(payload, fallback)
    if status_code >= 500:
        log.error("Converted server error", code=code, status=status_code)
    else:
        log.info("Converted API exception", code=code, status=status_code)

    headers = dict(response.headers) if getattr(response, "headers", None) else None
    return error_response(
        code, message, details, http_status=status_code, hint=hint, headers=headers
    )


def _classify(exc: Exception, status_code: int) -> Tuple[str, str]:
    for classes, code, fallback in DRF_EXCEPTION_CODES:
        if isinstance(exc, classes):
            return code, fallback
    if status_code >= 500:
        return "SERVER_ERROR", GENERIC_SERVER_MESSAGE
    return "UNKNOWN_ERROR", "Request failed"


def _django_validation_detail(
    exc: DjangoValidationError,
) -> Union[Dict[str, Any], list]:
    if hasattr(exc, "message_dict"):
        return exc.message_dict
    return list(exc.messages)


def _message_from(payload: Any, fallback: str) -> str:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("detail"), str):
        return payload["detail"]
    if isinstance(payload, list) and payload and isinstance(payload[0], str):
        return payload[0]
    return fallback


__all__ = ["ApplicationError", "global_exception_handler"]

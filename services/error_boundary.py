"""
services/error_boundary.py
==========================
The single place where service failures become caller-facing results.

    result = handle(resource_service.get_by_id, 42)
    result.status   # 200 / 400 / 404 / 500
    result.data     # response DTO on success
    result.error    # message on failure

Validation and not-found messages pass through unchanged. Persistence
failures and anything unexpected are logged with their traceback and
reported with a generic message, so storage details never leak.
"""
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Optional
import logging

from constants import GENERIC_ERROR_MESSAGE
from exceptions import NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_CREATED = 201
HTTP_NO_CONTENT = 204
HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_INTERNAL_ERROR = 500


@dataclass
class ServiceResult:
    status: int
    data: Any = None
    error: Optional[str] = None
    code: str = ""
    field: str = ""

    @property
    def ok(self) -> bool:
        return self.status < HTTP_BAD_REQUEST


def status_for(exc: BaseException) -> int:
    if isinstance(exc, ValidationError):
        return HTTP_BAD_REQUEST
    if isinstance(exc, NotFoundError):
        return HTTP_NOT_FOUND
    return HTTP_INTERNAL_ERROR


def to_result(exc: Exception) -> ServiceResult:
    status = status_for(exc)
    if status == HTTP_INTERNAL_ERROR:
        if isinstance(exc, PersistenceError):
            logger.error(f"Persistence failure: {exc}", exc_info=exc)
        else:
            logger.error(f"Unhandled error: {exc}", exc_info=exc)
        return ServiceResult(status=status, error=GENERIC_ERROR_MESSAGE, code="INTERNAL_ERROR")

    logger.info(f"Request rejected ({status}): {exc.message}")
    return ServiceResult(
        status=status,
        error=exc.message,
        code=exc.code,
        field=getattr(exc, "field", ""),
    )


def handle(func: Callable, *args, success_status: int = HTTP_OK, **kwargs) -> ServiceResult:
    """Call ``func`` and fold its outcome into a ServiceResult."""
    try:
        data = func(*args, **kwargs)
    except Exception as exc:
        return to_result(exc)
    status = HTTP_NO_CONTENT if data is None and success_status == HTTP_OK else success_status
    return ServiceResult(status=status, data=data)


def guarded(success_status: int = HTTP_OK):
    """Decorator form of ``handle``."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs) -> ServiceResult:
            return handle(func, *args, success_status=success_status, **kwargs)
        return wrapper
    return decorator

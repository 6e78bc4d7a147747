# backend/services/results.py
import enum
import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION_ERROR"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    UNAUTHORIZED = "UNAUTHORIZED"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL_ERROR"


# Base for every business-rule failure raised inside a service operation
class ServiceError(Exception):
    kind = ErrorKind.INTERNAL

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND


class ValidationFailed(ServiceError):
    kind = ErrorKind.VALIDATION


class InsufficientStockError(ServiceError):
    kind = ErrorKind.INSUFFICIENT_STOCK


class UnauthorizedError(ServiceError):
    kind = ErrorKind.UNAUTHORIZED


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT


@dataclass
class OperationResult:
    """Outcome of a core operation, returned instead of raising to the caller."""

    success: bool
    message: str
    errors: Dict[str, List[str]] = field(default_factory=dict)
    error_kind: Optional[ErrorKind] = None
    data: Any = None


def success(message: str, data: Any = None) -> OperationResult:
    return OperationResult(success=True, message=message, data=data)


def failure(error: ServiceError) -> OperationResult:
    return OperationResult(
        success=False,
        message=error.message,
        errors=error.errors,
        error_kind=error.kind,
    )


def require_user(user_id) -> None:
    if not user_id:
        raise UnauthorizedError("Authentication required", {"user": ["Authentication required"]})


def service_operation(failure_message: str):
    """
    Wraps a service method so it always returns an OperationResult.

    The wrapped method returns an OperationResult on success and raises
    ServiceError subclasses for rule violations. Any failure rolls back the
    session, so no partial ledger, quantity or alert writes survive.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except ServiceError as e:
                self.db.rollback()
                logger.warning("%s rejected (%s): %s", func.__qualname__, e.kind.value, e.message)
                return failure(e)
            except Exception:
                self.db.rollback()
                logger.exception("%s failed unexpectedly", func.__qualname__)
                return OperationResult(
                    success=False,
                    message=failure_message,
                    errors={"server": [failure_message]},
                    error_kind=ErrorKind.INTERNAL,
                )

        return wrapper

    return decorator

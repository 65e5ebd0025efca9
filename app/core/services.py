"""
Base service layer patterns for business logic encapsulation.

- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with logging and transaction helpers

Pattern Comparison:
    - ServiceResult: Use for expected outcomes, including "nothing to do"
      results such as a webhook for a customer we do not know
    - Exceptions: Use for unexpected failures (database errors, provider
      outages) that should leave a webhook event unprocessed

Usage:
    from core.services import BaseService, ServiceResult

    class ReplayService(BaseService):
        @classmethod
        def replay(cls, event_id) -> ServiceResult[dict]:
            with cls.atomic():
                ...
            cls.get_logger().info("Replayed %s", event_id)
            return ServiceResult.success({"message": "Replayed"})
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code

    Usage:
        result = processor.process_event(webhook_event)
        if result:
            print(result.data["message"])
        else:
            print(f"Error: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Example:
            return ServiceResult.success({"message": "Subscription renewal recorded"})
        """
        return cls(success=True, data=data)

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own message and code; anything else
        is reported by class name so operators can tell a database error
        from a provider outage in the stored event.
        """
        message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
        return cls(
            success=False,
            error=message,
            error_code=error_code
            or getattr(exc, "error_code", None)
            or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to the JSON body returned to webhook senders.

        Successful dict payloads are flattened into the body, so a handler
        returning {"message": "..."} produces {"success": true, "message": "..."}.
        """
        if self.success:
            if isinstance(self.data, dict):
                return {"success": True, **self.data}
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Use @classmethod where no collaborators are needed
        - Services that need collaborators take them in __init__
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Return a logger named after the service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around Django's transaction.atomic() so transaction
        boundaries read explicitly in service code.
        """
        with transaction.atomic():
            yield

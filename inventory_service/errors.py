"""
Error taxonomy and result type for the Inventory service.

Service operations never raise for expected failures. They return a
``Result`` holding either a value or a ``ServiceError`` whose ``kind`` tells
the transport layer how to respond.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORAGE_FAILURE = "storage_failure"


@dataclass(frozen=True)
class ServiceError:
    """
    A failed operation.

    Attributes:
        kind: Category of the failure
        message: Human-readable summary
        errors: Field name -> message, one entry per violated field
            (validation errors only)
    """
    kind: ErrorKind
    message: str
    errors: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def validation(cls, errors: Dict[str, str], message: str = "Validation failed") -> "ServiceError":
        return cls(ErrorKind.VALIDATION, message, dict(errors))

    @classmethod
    def not_found(cls, item_id: int) -> "ServiceError":
        return cls(ErrorKind.NOT_FOUND, f"Item ID: {item_id} not found")

    @classmethod
    def storage_failure(cls, message: str) -> "ServiceError":
        return cls(ErrorKind.STORAGE_FAILURE, message)

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message, "errors": dict(self.errors)}


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a service operation: exactly one of value/error is meaningful."""
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ServiceError) -> "Result[T]":
        return cls(error=error)

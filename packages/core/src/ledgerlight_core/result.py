"""Result-or-error contract shared by every public ledger operation.

Every operation returns a ``Result``: either a value and no error, or no value
and a ``CoreError``. Results unpack like a pair so callers can write::

    state, error = append_record(state, "income", payload, "2026-02-10T12:00:00Z")
    if error:
        ...

Internally, helpers raise ``ledgerlight_core.exceptions.ValidationError`` and
the ``result_boundary`` decorator turns it (or a pydantic validation failure)
into ``Result.err``. Nothing raised for invalid input reaches the caller.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ledgerlight_core.exceptions import ValidationError

logger = structlog.get_logger()

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Closed set of error kinds.

    Only VALIDATION is produced by the core; the JSON kinds belong to the
    persistence collaborator and are listed so both layers share one taxonomy.
    """

    VALIDATION = "VALIDATION"
    JSON_PARSE = "JSON_PARSE"
    JSON_STRINGIFY = "JSON_STRINGIFY"


class CoreError(BaseModel):
    """Structured error returned in place of a value."""

    model_config = {"frozen": True}

    kind: ErrorKind = Field(description="Error category")
    message: str = Field(description="Human-readable error description")
    field: Optional[str] = Field(
        default=None,
        description="Offending field or collection, when one can be named",
    )

    @classmethod
    def validation(cls, message: str, field: Optional[str] = None) -> CoreError:
        """Create a VALIDATION error."""
        return cls(kind=ErrorKind.VALIDATION, message=message, field=field)

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> CoreError:
        """Collapse a pydantic validation failure into its first error."""
        errors = exc.errors()
        if not errors:
            return cls.validation(str(exc))
        first = errors[0]
        field = _format_loc(first.get("loc", ()))
        message = first.get("msg", "Invalid value")
        if field:
            message = f"{field}: {message}"
        return cls.validation(message, field=field or None)


def _format_loc(loc: tuple) -> str:
    """Render a pydantic error location as ``income[0].amount``."""
    rendered = ""
    for part in loc:
        if isinstance(part, int):
            rendered += f"[{part}]"
        elif rendered:
            rendered += f".{part}"
        else:
            rendered = str(part)
    return rendered


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a ledger operation.

    Exactly one of ``value`` and ``error`` is meaningful: a failed result always
    has ``value is None``.

    Example:
        ```python
        result = Result.ok(42)
        value, error = result
        assert error is None
        ```
    """

    value: Optional[T] = None
    error: Optional[CoreError] = None

    def __post_init__(self) -> None:
        if self.error is not None and self.value is not None:
            raise ValueError("Result cannot carry both a value and an error")

    @property
    def is_ok(self) -> bool:
        """Check if the operation succeeded."""
        return self.error is None

    @property
    def is_err(self) -> bool:
        """Check if the operation failed."""
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value, raising ``ValidationError`` for a failed result."""
        if self.error is not None:
            raise ValidationError(self.error.message, field=self.error.field)
        return self.value  # type: ignore[return-value]

    def __iter__(self) -> Iterator[Any]:
        yield self.value
        yield self.error

    @classmethod
    def ok(cls, value: T) -> Result[T]:
        """Create a successful result."""
        return cls(value=value, error=None)

    @classmethod
    def err(cls, error: CoreError) -> Result[Any]:
        """Create a failed result."""
        return cls(value=None, error=error)


def result_boundary(func: Callable[..., T]) -> Callable[..., Result[T]]:
    """Wrap a raising implementation so it returns a ``Result`` instead.

    ``ValidationError`` and pydantic validation failures become VALIDATION
    errors. Any other exception is a programming error and propagates.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Result[T]:
        try:
            return Result.ok(func(*args, **kwargs))
        except ValidationError as exc:
            error = exc.to_core_error()
        except PydanticValidationError as exc:
            error = CoreError.from_pydantic(exc)
        logger.debug(
            "operation_rejected",
            operation=func.__name__,
            kind=error.kind.value,
            field=error.field,
            message=error.message,
        )
        return Result.err(error)

    return wrapper


__all__ = [
    "ErrorKind",
    "CoreError",
    "Result",
    "result_boundary",
]

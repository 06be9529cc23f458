"""
result.py

Explicit success/failure value returned by fallible trace operations.
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from causal_trace.errors import TraceError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of an operation: either a value or a TraceError.

    Example:
        result = validate(chain)
        if not result.ok:
            print(result.error.format_full())
    """
    value: Optional[T] = None
    error: Optional[TraceError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: TraceError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        """True if the operation succeeded."""
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value

    def unwrap_or(self, default: Any) -> Any:
        """Return the value, or default on failure."""
        if self.error is not None:
            return default
        return self.value

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        if self.error is not None:
            return f"Result(error={self.error.format()!r})"
        return f"Result(value={self.value!r})"

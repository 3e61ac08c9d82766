"""Tagged success/failure result used at the state layer's boundaries.

Operations that must never raise to the caller (remote fetches, wrapped
async work) return ``Ok(value)`` or ``Err(error)`` so that a legitimately
empty result can be told apart from a failure.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


class UnwrapError(Exception):
    """Raised when unwrapping an Err result."""

    def __init__(self, error: Any):
        super().__init__(f"Called unwrap() on Err: {error!r}")
        self.error = error


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed result carrying the error (usually the exception)."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        raise UnwrapError(self.error)

    def unwrap_or(self, default: T) -> T:
        return default


Result = Ok[T] | Err[E]

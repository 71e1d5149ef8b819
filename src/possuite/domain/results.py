from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from possuite.domain.errors import AppError

T = TypeVar("T")

log = logging.getLogger("possuite.results")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of a mutating operation.

    Callers branch on ``success`` and show ``message`` verbatim on failure.
    """

    success: bool
    value: Optional[T] = None
    error: Optional[AppError] = None

    @property
    def message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error is not None else None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @classmethod
    def ok(cls, value: T = None) -> "OperationResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: AppError) -> "OperationResult[T]":
        return cls(success=False, error=error)


def returns_result(fn: Callable[..., T]) -> Callable[..., OperationResult[T]]:
    """Run ``fn`` and fold any AppError it raises into a failed result."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs) -> OperationResult[T]:
        try:
            return OperationResult.ok(fn(*args, **kwargs))
        except AppError as exc:
            log.warning("operation_rejected op=%s code=%s error=%s", fn.__qualname__, exc.code, exc)
            return OperationResult.fail(exc)

    return wrapper

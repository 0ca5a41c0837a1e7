"""Poll-until-resolved wrappers around asynchronous package operations.

The reconciler never awaits or blocks on an operation: every tick it checks
``is_complete`` and returns when the answer is no.
"""

from __future__ import annotations

from concurrent.futures import CancelledError, Future
from dataclasses import dataclass
from typing import Generic, Optional, Protocol, TypeVar

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@dataclass(frozen=True)
class OperationError:
    """Failure payload of a resolved operation. ``message`` may be missing."""

    message: Optional[str] = None
    exception: Optional[BaseException] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "OperationError":
        text = str(exc).strip()
        return cls(message=text or None, exception=exc)


class Operation(Protocol[T_co]):
    @property
    def is_complete(self) -> bool: ...

    @property
    def succeeded(self) -> bool: ...

    @property
    def result(self) -> T_co: ...

    @property
    def error(self) -> Optional[OperationError]: ...


class FutureOperation(Generic[T]):
    """Adapter exposing a ``concurrent.futures.Future`` as an operation."""

    def __init__(self, future: "Future[T]"):
        self._future = future

    @property
    def is_complete(self) -> bool:
        return self._future.done()

    @property
    def succeeded(self) -> bool:
        return self.is_complete and self.error is None

    @property
    def result(self) -> T:
        if not self.succeeded:
            raise RuntimeError("Operation has no result")
        return self._future.result()

    @property
    def error(self) -> Optional[OperationError]:
        if not self._future.done():
            return None
        if self._future.cancelled():
            return OperationError(message="Operation was cancelled.", exception=CancelledError())
        exc = self._future.exception()
        return OperationError.from_exception(exc) if exc is not None else None

    def cancel(self) -> bool:
        return self._future.cancel()


class CompletedOperation(Generic[T]):
    """An operation that has already succeeded."""

    def __init__(self, value: T):
        self._value = value

    is_complete = True
    succeeded = True
    error = None

    @property
    def result(self) -> T:
        return self._value


class FailedOperation:
    """An operation that has already failed."""

    is_complete = True
    succeeded = False

    def __init__(self, error: Optional[OperationError] = None):
        self._error = error or OperationError()

    @property
    def result(self):
        raise RuntimeError("Operation has no result")

    @property
    def error(self) -> OperationError:
        return self._error

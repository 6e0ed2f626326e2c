"""Exception hierarchy for safe-executor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import asyncio


class SafeExecutorError(Exception):
    """Base exception for all safe-executor errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(SafeExecutorError):
    """Execution policy validation or resolution failed."""


class InternalError(SafeExecutorError):
    """A safe-executor internal error (bug) or invariant violation."""


class ExecutionTimeoutError(SafeExecutorError, TimeoutError):
    """An attempt did not complete within its per-attempt timeout.

    Synthesized by the executor, never raised by the task itself, so callers
    can tell "too slow" apart from "the operation rejected". The timed-out
    task is available on ``pending``; ``abandoned`` holds every task that
    timed out so far in the same ``run()`` call, oldest first, this one last.
    """

    def __init__(
        self,
        message: str,
        *,
        timeout_s: float,
        attempt: int,
        pending: asyncio.Task[Any] | None = None,
        abandoned: tuple[asyncio.Task[Any], ...] = (),
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.timeout_s = timeout_s
        self.attempt = attempt
        self.pending = pending
        self.abandoned = abandoned


class ErrorMapperError(SafeExecutorError):
    """The caller-supplied error mapper raised while mapping a failure.

    The mapper's own exception is chained as ``__cause__``; the error it was
    asked to map is kept on ``original``.
    """

    def __init__(
        self, message: str, *, original: BaseException, hint: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.original = original


class FailureTypeError(SafeExecutorError, TypeError):
    """A raw error does not match the declared failure type.

    Raised when ``failure_type`` is given without an ``error_mapper`` and the
    task failed with an error outside that type. This is a caller bug, not an
    outcome, so it is raised instead of being wrapped in a ``Failure``.
    """

    def __init__(
        self,
        message: str,
        *,
        original: BaseException,
        expected: type | tuple[type, ...],
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.original = original
        self.expected = expected

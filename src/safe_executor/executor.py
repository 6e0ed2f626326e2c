"""Safe execution of fallible async tasks.

``run()`` drives a bounded number of sequential attempts of a zero-argument
async task and turns the outcome into a ``Result``:

- bounded retries with a fixed delay between attempts,
- an optional timeout applied to each attempt on its own,
- an optional error mapper applied to the final error.

Task errors never escape ``run()``. Only caller bugs (a non-callable task, an
invalid policy, a raising error mapper, a raw error outside the declared
``failure_type``) and cancellation of ``run()`` itself are raised.

Timeouts race the attempt with ``asyncio.wait``. By default the losing task is
abandoned, not cancelled: it keeps running in the background and is exposed
as ``ExecutionTimeoutError.pending``. Every task timed out earlier in the same
call is listed on ``ExecutionTimeoutError.abandoned``, so a run that ends on a
timeout hands back all of them. A run that ends any other way (success, or a
final error raised by the task) does not report earlier timed-out attempts;
they run to completion unobserved. Pass ``cancel_on_timeout=True`` to send
each timed-out task ``Task.cancel()`` instead.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, cast

from safe_executor.config import ExecutionPolicy
from safe_executor.errors import (
    ErrorMapperError,
    ExecutionTimeoutError,
    FailureTypeError,
    InternalError,
)
from safe_executor.result import Failure, Result, Success

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from safe_executor.config import Duration

logger = logging.getLogger(__name__)

_DEFAULT_POLICY = ExecutionPolicy()


async def run[S, F = Exception](
    task: Callable[[], Awaitable[S]],
    *,
    retries: int | None = None,
    retry_delay: Duration | None = None,
    timeout: Duration | None = None,
    error_mapper: Callable[[Exception], F] | None = None,
    failure_type: type[F] | tuple[type, ...] | None = None,
    cancel_on_timeout: bool | None = None,
    policy: ExecutionPolicy | None = None,
) -> Result[S, F]:
    """Run *task* with retries and an optional per-attempt timeout.

    Args:
        task: Zero-argument callable returning an awaitable; it is called once
            per attempt so each retry starts fresh work.
        retries: Attempts after the first one (default 0).
        retry_delay: Seconds or ``timedelta`` to wait between attempts
            (default 1 second). Not applied after the last attempt.
        timeout: Seconds or ``timedelta`` bounding each attempt. Exceeding it
            fails the attempt with ``ExecutionTimeoutError``.
        error_mapper: Converts the final raw error into the failure payload.
        failure_type: Declared failure type when no *error_mapper* is given;
            a raw error outside it raises ``FailureTypeError``.
        cancel_on_timeout: Cancel a timed-out task instead of abandoning it.
        policy: Base ``ExecutionPolicy``; explicit arguments override it.

    Returns:
        ``Success(value)`` from the first successful attempt, or
        ``Failure(error)`` once every attempt has failed.

    Raises:
        TypeError: *task* is not callable or did not return an awaitable.
        ConfigurationError: The resolved policy is invalid.
        ErrorMapperError: *error_mapper* raised.
        FailureTypeError: The raw error does not match *failure_type*.

    Example:
        result = await run(fetch_user, retries=2, retry_delay=0.5, timeout=5)
        match result:
            case Success(value=user):
                print(user)
            case Failure(value=error):
                print(f"gave up: {error}")
    """
    if not callable(task):
        raise TypeError(f"task must be callable, got {type(task).__name__}")

    resolved = (policy if policy is not None else _DEFAULT_POLICY).with_overrides(
        retries=retries,
        retry_delay=retry_delay,
        timeout=timeout,
        cancel_on_timeout=cancel_on_timeout,
    )
    total_attempts = resolved.total_attempts
    timed_out: list[asyncio.Task[Any]] = []

    for attempt in range(total_attempts):
        try:
            awaitable = task()
        except Exception as exc:
            error = exc
        else:
            if not inspect.isawaitable(awaitable):
                raise TypeError(
                    "task must return an awaitable, got "
                    f"{type(awaitable).__name__}; pass an async function"
                )
            try:
                value = await _settle(
                    awaitable, attempt=attempt, policy=resolved, timed_out=timed_out
                )
            except Exception as exc:
                error = exc
            else:
                if timed_out and not resolved.cancel_on_timeout:
                    logger.debug(
                        "Succeeded on attempt %d; %d timed-out attempt(s) "
                        "left running",
                        attempt + 1,
                        len(timed_out),
                    )
                return Success(value)

        if attempt == total_attempts - 1:
            logger.debug(
                "All %d attempt(s) failed; last error: %r", total_attempts, error
            )
            return Failure(
                _failure_payload(
                    error, error_mapper=error_mapper, failure_type=failure_type
                )
            )

        logger.debug(
            "Attempt %d/%d failed with %r; retrying in %.3fs",
            attempt + 1,
            total_attempts,
            error,
            resolved.retry_delay_s,
        )
        await asyncio.sleep(resolved.retry_delay_s)

    # Defensive: the loop always returns on its final attempt.
    raise InternalError(  # pragma: no cover
        f"run() exhausted {total_attempts} attempt(s) without producing a result"
    )


async def _settle[S](
    awaitable: Awaitable[S],
    *,
    attempt: int,
    policy: ExecutionPolicy,
    timed_out: list[asyncio.Task[Any]],
) -> S:
    """Await one attempt, racing it against the policy timeout when set.

    A task that loses the race is appended to *timed_out*.
    """
    if policy.timeout_s is None:
        return await awaitable

    pending = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({pending}, timeout=policy.timeout_s)
    except asyncio.CancelledError:
        # run() itself was cancelled; do not leave the attempt behind.
        pending.cancel()
        raise

    if pending in done:
        return pending.result()

    pending.add_done_callback(_consume_exception)
    if policy.cancel_on_timeout:
        pending.cancel()
    timed_out.append(pending)
    raise ExecutionTimeoutError(
        f"Attempt {attempt + 1} timed out after {policy.timeout_s}s",
        timeout_s=policy.timeout_s,
        attempt=attempt,
        pending=pending,
        abandoned=tuple(timed_out),
        hint="Raise timeout or make the task faster.",
    )


def _consume_exception(fut: asyncio.Future[Any]) -> None:
    """Avoid 'Task exception was never retrieved' for abandoned attempts."""
    if fut.cancelled():
        return
    _ = fut.exception()


def _failure_payload[F](
    error: Exception,
    *,
    error_mapper: Callable[[Exception], F] | None,
    failure_type: type[F] | tuple[type, ...] | None,
) -> F:
    if error_mapper is not None:
        try:
            return error_mapper(error)
        except Exception as exc:
            raise ErrorMapperError(
                f"error_mapper raised {type(exc).__name__} while mapping "
                f"{type(error).__name__}: {exc}",
                original=error,
                hint="error_mapper must not raise; return a failure value instead.",
            ) from exc

    if failure_type is not None and not isinstance(error, failure_type):
        raise FailureTypeError(
            f"Task failed with {type(error).__name__}, which is not an instance "
            f"of the declared failure_type {failure_type!r}",
            original=error,
            expected=failure_type,
            hint="Pass an error_mapper to convert errors to the failure type.",
        ) from error

    return cast("F", error)

"""Execution policy: frozen, validated retry and timeout settings."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import timedelta
import math
import os
from typing import Any

from dotenv import find_dotenv, load_dotenv

from safe_executor.errors import ConfigurationError

ENV_PREFIX = "SAFE_EXECUTOR_"

Duration = float | int | timedelta

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


def to_seconds(duration: Duration, *, name: str = "duration") -> float:
    """Convert a float/int number of seconds or a ``timedelta`` to seconds."""
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise ConfigurationError(
            f"{name} must be seconds or a timedelta, got {type(duration).__name__}",
            hint=f"Pass {name}=0.5 or {name}=timedelta(milliseconds=500).",
        )
    return float(duration)


@dataclass(frozen=True)
class ExecutionPolicy:
    """Immutable retry/timeout policy applied by ``run()``.

    Example:
        policy = ExecutionPolicy(retries=3, retry_delay_s=0.2, timeout_s=5.0)
        result = await run(fetch, policy=policy)
    """

    #: Extra attempts after the first one. Total attempts = ``retries + 1``.
    retries: int = 0
    #: Fixed wait between a failed attempt and the next one.
    retry_delay_s: float = 1.0
    #: Per-attempt deadline; *None* disables the timeout race.
    timeout_s: float | None = None
    #: Cancel the in-flight task on timeout instead of abandoning it.
    cancel_on_timeout: bool = False

    def __post_init__(self) -> None:
        """Validate invariants to keep retry behavior predictable."""
        if isinstance(self.retries, bool) or not isinstance(self.retries, int):
            raise ConfigurationError(
                f"retries must be an int, got {type(self.retries).__name__}",
                hint="Pass retries=2 for three attempts in total.",
            )
        if self.retries < 0:
            raise ConfigurationError(
                f"retries must be ≥ 0, got {self.retries}",
                hint="retries counts attempts after the first; use 0 to disable.",
            )
        _check_seconds(self.retry_delay_s, "retry_delay_s")
        if self.timeout_s is not None:
            _check_seconds(self.timeout_s, "timeout_s")
        if self.retry_delay_s < 0:
            raise ConfigurationError(
                f"retry_delay_s must be ≥ 0, got {self.retry_delay_s}",
            )
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0 or None, got {self.timeout_s}",
                hint="Omit timeout to let each attempt run until it settles.",
            )

    @property
    def total_attempts(self) -> int:
        return self.retries + 1

    def with_overrides(
        self,
        *,
        retries: int | None = None,
        retry_delay: Duration | None = None,
        timeout: Duration | None = None,
        cancel_on_timeout: bool | None = None,
    ) -> ExecutionPolicy:
        """Return a copy with every non-``None`` override applied."""
        changes: dict[str, Any] = {}
        if retries is not None:
            changes["retries"] = retries
        if retry_delay is not None:
            changes["retry_delay_s"] = to_seconds(retry_delay, name="retry_delay")
        if timeout is not None:
            changes["timeout_s"] = to_seconds(timeout, name="timeout")
        if cancel_on_timeout is not None:
            changes["cancel_on_timeout"] = bool(cancel_on_timeout)
        return replace(self, **changes) if changes else self

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        *,
        dotenv_path: str | os.PathLike[str] | None = None,
    ) -> ExecutionPolicy:
        """Build a policy from ``<prefix>*`` environment variables.

        A ``.env`` file (*dotenv_path*, or the nearest one above the working
        directory) is loaded first; variables already present in the process
        environment take precedence over it. Unset variables keep their
        defaults.
        """
        load_dotenv(dotenv_path or find_dotenv(usecwd=True), override=False)

        changes: dict[str, Any] = {}
        raw = os.environ.get(f"{prefix}RETRIES")
        if raw is not None:
            changes["retries"] = _parse(raw, int, f"{prefix}RETRIES")
        raw = os.environ.get(f"{prefix}RETRY_DELAY_S")
        if raw is not None:
            changes["retry_delay_s"] = _parse(raw, float, f"{prefix}RETRY_DELAY_S")
        raw = os.environ.get(f"{prefix}TIMEOUT_S")
        if raw is not None and raw.strip():
            changes["timeout_s"] = _parse(raw, float, f"{prefix}TIMEOUT_S")
        raw = os.environ.get(f"{prefix}CANCEL_ON_TIMEOUT")
        if raw is not None:
            changes["cancel_on_timeout"] = _coerce_bool(
                raw, f"{prefix}CANCEL_ON_TIMEOUT"
            )
        return cls(**changes)


def _check_seconds(value: object, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(
            f"{name} must be a number of seconds, got {type(value).__name__}",
            hint=f"Pass {name}=0.5, not a string or bool.",
        )
    if not math.isfinite(value):
        raise ConfigurationError(
            f"{name} must be finite, got {value}",
            hint=f"Pass a finite {name}; NaN and inf are not durations.",
        )


def _parse(raw: str, kind: type[int] | type[float], env_var: str) -> Any:
    try:
        return kind(raw.strip())
    except ValueError:
        raise ConfigurationError(
            f"{env_var} must be a valid {kind.__name__}, got {raw!r}",
            hint=f"Unset {env_var} to use the default.",
        ) from None


def _coerce_bool(raw: str, env_var: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE_VALUES:
        return True
    if v in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"{env_var} must be a boolean, got {raw!r}",
        hint="Use one of: 1/0, true/false, yes/no, on/off.",
    )

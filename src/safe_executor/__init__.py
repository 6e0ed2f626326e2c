"""safe-executor: run fallible async tasks and get an explicit Result back.

Public API:
    - run(): Execute a task with retries, per-attempt timeout and error mapping
    - Success / Failure / Result: The two-variant outcome type
    - ExecutionPolicy: Reusable, validated retry/timeout settings
"""

from __future__ import annotations

import logging

from safe_executor.config import ExecutionPolicy
from safe_executor.errors import (
    ConfigurationError,
    ErrorMapperError,
    ExecutionTimeoutError,
    FailureTypeError,
    InternalError,
    SafeExecutorError,
)
from safe_executor.executor import run
from safe_executor.result import Failure, Result, Success, is_failure, is_success

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("safe-executor")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("safe_executor").addHandler(logging.NullHandler())

__all__ = [
    "ConfigurationError",
    "ErrorMapperError",
    "ExecutionPolicy",
    "ExecutionTimeoutError",
    "Failure",
    "FailureTypeError",
    "InternalError",
    "Result",
    "SafeExecutorError",
    "Success",
    "is_failure",
    "is_success",
    "run",
]

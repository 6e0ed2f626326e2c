"""Result type for explicit success/failure outcomes.

``run()`` never raises for task failures; it returns one of two frozen
variants instead, so failure is a value the caller has to handle:

    match result:
        case Success(value=data):
            ...
        case Failure(value=error):
            ...

Both variants compare and hash by their payload. Equality works for any
payload, but ``hash()`` raises ``TypeError`` when the payload is unhashable
(a ``dict`` returned by an error mapper, for instance).
"""

from __future__ import annotations

import dataclasses
import typing


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful outcome holding the produced value."""

    value: TSuccess

    def __str__(self) -> str:
        return f"Success({self.value})"

    def __repr__(self) -> str:
        return f"Success({self.value!r})"


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failed outcome holding the (possibly mapped) error value."""

    value: TFailure

    def __str__(self) -> str:
        return f"Failure({self.value})"

    def __repr__(self) -> str:
        return f"Failure({self.value!r})"


type Result[S, F] = Success[S] | Failure[F]


def is_success[S, F](result: Result[S, F]) -> typing.TypeIs[Success[S]]:
    """Return True when *result* is the ``Success`` variant."""
    return isinstance(result, Success)


def is_failure[S, F](result: Result[S, F]) -> typing.TypeIs[Failure[F]]:
    """Return True when *result* is the ``Failure`` variant."""
    return isinstance(result, Failure)

"""Result type for explicit error handling.

Every fallible step of a bundle workflow (loading a bundle, building a charm,
querying a store) returns ``Ok(value)`` or ``Err(error)`` instead of raising.
Callers branch with ``isinstance`` or pattern matching:

    match Bundle.load(path):
        case Ok(bundle):
            ...
        case Err(error):
            print_error(error, console)

``collect`` folds a batch of named outcomes into one Result, keeping the
first error. The orchestrator uses it to separate "run every unit" from
"merge only if every unit succeeded".
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeGuard, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """A successful result.

    Attributes:
        value: The success value.
    """

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        """Apply ``f`` to the contained value."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[E], F]) -> Ok[T]:
        return self

    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain another fallible step onto this value."""
        return f(self.value)

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """A failed result.

    Attributes:
        error: The error value.
    """

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> None:
        """Raise ValueError, there is no value to return.

        Raises:
            ValueError: Always.
        """
        raise ValueError(f"called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Err[E]:
        return self

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Apply ``f`` to the contained error (e.g. to tag it with an app name)."""
        return Err(f(self.error))

    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Err[E]:
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]


def is_ok[T, E](result: Result[T, E]) -> TypeGuard[Ok[T]]:
    """Type guard that narrows a Result to Ok."""
    return isinstance(result, Ok)


def is_err[T, E](result: Result[T, E]) -> TypeGuard[Err[E]]:
    """Type guard that narrows a Result to Err."""
    return isinstance(result, Err)


def collect[T, E](outcomes: Iterable[tuple[str, Result[T, E]]]) -> Result[dict[str, T], E]:
    """Fold named outcomes into a name-keyed mapping, or the first error.

    Outcomes may arrive in any order; the mapping is keyed by name, so the
    merged value does not depend on it.

    Args:
        outcomes: ``(name, result)`` pairs.

    Returns:
        Ok(mapping of name to value) if every outcome is Ok, otherwise the
        first Err encountered.
    """
    values: dict[str, T] = {}
    for name, result in outcomes:
        if isinstance(result, Err):
            return result
        values[name] = result.value
    return Ok(values)

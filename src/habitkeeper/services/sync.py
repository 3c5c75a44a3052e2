"""Optimistic update bookkeeping.

An :class:`OptimisticUpdate` tracks one mutated entity through
``idle -> pending -> committed | rolled_back``. The persistence call reports its
outcome as a :class:`PersistResult` value instead of raising, and that value
drives the transition.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from ..logging_config import get_logger

T = TypeVar("T")

logger = get_logger("services.sync")


class UpdateState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class InvalidTransition(RuntimeError):
    """Raised when an update is driven out of order."""


@dataclass(frozen=True)
class PersistResult(Generic[T]):
    """Outcome of a persistence call: either a stored value or an error message."""

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "PersistResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "PersistResult[T]":
        return cls(error=error or "Persistence failed")


class OptimisticUpdate(Generic[T]):
    """Hold the displayed value for one entity while a write is in flight."""

    def __init__(self, known_good: T) -> None:
        self.state = UpdateState.IDLE
        self.known_good = known_good
        self.optimistic: Optional[T] = None
        self.error: Optional[str] = None

    @property
    def current(self) -> T:
        """The value that should be displayed right now."""

        if self.state is UpdateState.PENDING and self.optimistic is not None:
            return self.optimistic
        return self.known_good

    def apply(self, optimistic_value: T) -> T:
        if self.state is UpdateState.PENDING:
            raise InvalidTransition("An update is already pending")
        self.optimistic = optimistic_value
        self.error = None
        self.state = UpdateState.PENDING
        return optimistic_value

    def resolve(
        self,
        result: PersistResult[T],
        *,
        refetch: Optional[Callable[[], Optional[T]]] = None,
    ) -> T:
        """Commit on success; on failure restore the last known-good value.

        ``refetch`` loads the authoritative value from the store after a failure;
        when it yields nothing the previous known-good value is kept.
        """

        if self.state is not UpdateState.PENDING:
            raise InvalidTransition(f"Cannot resolve an update in state {self.state.value}")

        if result.ok:
            self.known_good = result.value if result.value is not None else self.optimistic
            self.state = UpdateState.COMMITTED
        else:
            self.error = result.error
            if refetch is not None:
                fetched = refetch()
                if fetched is not None:
                    self.known_good = fetched
            self.state = UpdateState.ROLLED_BACK
            logger.warning("Optimistic update rolled back", extra={"error": result.error})
        self.optimistic = None
        return self.known_good


def run_optimistic(
    known_good: T,
    optimistic_value: T,
    persist: Callable[[T], PersistResult[T]],
    *,
    refetch: Optional[Callable[[], Optional[T]]] = None,
) -> OptimisticUpdate[T]:
    """Drive a full apply/persist/resolve cycle and return the finished update."""

    update: OptimisticUpdate[T] = OptimisticUpdate(known_good)
    update.apply(optimistic_value)
    update.resolve(persist(optimistic_value), refetch=refetch)
    return update


__all__ = [
    "InvalidTransition",
    "OptimisticUpdate",
    "PersistResult",
    "UpdateState",
    "run_optimistic",
]

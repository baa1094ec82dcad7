from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from app.core.logging import get_logger

T = TypeVar("T")

logger = get_logger()


@dataclass
class OptimisticOutcome(Generic[T]):
    value: T
    previous: T
    speculative: T
    reconciled: bool

    @property
    def corrected(self) -> bool:
        """True when the confirmed value differs from what was shown."""
        return self.reconciled and self.value != self.speculative


class OptimisticState(Generic[T]):
    """Holds a value that is changed before the store confirms it.

    ``apply`` shows the speculative value immediately, then either adopts
    what the store reports back or restores the previous value if the
    write fails.
    """

    def __init__(self, value: T, label: str = "state") -> None:
        self.value = value
        self.label = label

    async def apply(self, speculative: T, commit: Callable[[], Awaitable[T | None]]) -> OptimisticOutcome[T]:
        previous = self.value
        self.value = speculative
        try:
            confirmed = await commit()
        except Exception as exc:
            self.value = previous
            logger.warning("optimistic_revert", label=self.label, error=str(exc))
            raise
        if confirmed is None:
            return OptimisticOutcome(value=self.value, previous=previous, speculative=speculative, reconciled=False)
        self.value = confirmed
        return OptimisticOutcome(value=confirmed, previous=previous, speculative=speculative, reconciled=True)

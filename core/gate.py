"""
Bounded-parallelism executor shared by the category and detail fan-outs.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Iterable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Settled result of one gated task: either a value or the error it raised."""
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ConcurrencyGate:
    """
    Runs coroutine factories with at most *limit* in flight.

    A new task starts as soon as a running one finishes. Failures are
    collected per task and never cancel siblings; :meth:`run` returns only
    after every task has settled, with outcomes in input order.
    """

    def __init__(self, limit: int, *, name: str = "gate"):
        if limit < 1:
            raise ValueError(f"concurrency limit must be >= 1, got {limit}")
        self.limit = limit
        self.name = name

    async def run(self, factories: Iterable[Callable[[], Awaitable[T]]]) -> List[Outcome[T]]:
        factories = list(factories)
        if not factories:
            return []

        semaphore = asyncio.Semaphore(self.limit)

        async def _guarded(factory: Callable[[], Awaitable[T]]) -> T:
            async with semaphore:
                return await factory()

        logger.debug(f"[{self.name}] running {len(factories)} tasks, limit {self.limit}")
        settled = await asyncio.gather(
            *(_guarded(factory) for factory in factories),
            return_exceptions=True,
        )

        outcomes: List[Outcome[T]] = []
        for result in settled:
            if isinstance(result, BaseException):
                outcomes.append(Outcome(error=result))
            else:
                outcomes.append(Outcome(value=result))

        failed = sum(1 for o in outcomes if not o.ok)
        if failed:
            logger.debug(f"[{self.name}] {failed}/{len(outcomes)} tasks failed")
        return outcomes

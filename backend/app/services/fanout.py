import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Settled:
    """Outcome of one awaitable in an all-settled fan-out."""

    name: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: Any) -> Any:
        return self.value if self.ok else default


async def gather_settled(calls: Dict[str, Awaitable[Any]]) -> Dict[str, Settled]:
    """
    Run every awaitable concurrently and wait for all of them.

    A failure never cancels its siblings; it is captured on the Settled
    result instead. Insertion order of `calls` is preserved.
    """
    names = list(calls)
    outcomes: List[Any] = await asyncio.gather(*calls.values(), return_exceptions=True)

    results: Dict[str, Settled] = {}
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            logger.warning(f"Fan-out call '{name}' failed: {outcome}")
            results[name] = Settled(name=name, error=outcome)
        else:
            results[name] = Settled(name=name, value=outcome)
    return results

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, final

from mvt.errors import AlreadyProcessing

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@final
class SingleFlight:
    """Allows at most one holder at a time; contenders are turned away, not queued."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def claim(self) -> AsyncIterator[None]:
        # NOTE: there must be no await point between the check and the acquisition,
        # otherwise two tasks could both see the lock as free. Acquiring a free lock
        # does not suspend.
        if self._lock.locked():
            raise AlreadyProcessing
        async with self._lock:
            yield

"""Toggle sequences for commands the scale does not acknowledge.

The scale only confirms a toggle by eventually reporting the new state in its
notification frames, so every toggle is followed by polling the locally
observed flag until it matches.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging

from .const import BT_SETTLE_DELAY, BT_SETTLE_RETRIES
from .exceptions import FelicitaInvalidArgument, FelicitaSettleTimeout

_LOGGER = logging.getLogger(__name__)


async def wait_for_state(
    observe: Callable[[], bool],
    target: bool,
    poll_interval: float = BT_SETTLE_DELAY,
    max_retries: int = BT_SETTLE_RETRIES,
) -> None:
    """Poll observe() until it returns target.

    Must not be awaited from the notification handler, the observed value is
    only updated while notifications are being delivered.
    """
    for _ in range(max_retries):
        if observe() == target:
            return
        await asyncio.sleep(poll_interval)

    raise FelicitaSettleTimeout(target, poll_interval * max_retries)


class SettleSequencer:
    """Drive multi step buzzer toggles against the observed buzzer flag."""

    def __init__(
        self,
        observe: Callable[[], bool],
        toggle: Callable[[], Awaitable[None]],
        poll_interval: float = BT_SETTLE_DELAY,
        max_retries: int = BT_SETTLE_RETRIES,
    ) -> None:
        self._observe = observe
        self._toggle = toggle
        self._poll_interval = poll_interval
        self._max_retries = max_retries

    async def wait_for(self, target: bool) -> None:
        """Wait for the buzzer flag to settle at target."""
        await wait_for_state(
            self._observe, target, self._poll_interval, self._max_retries
        )

    async def buzz(self, n: int) -> None:
        """Make the scale buzz n times, leaving the buzzer flag as it was."""
        if n <= 0:
            raise FelicitaInvalidArgument(f"invalid number of beeps requested: {n}")

        # Re-enabling the buzzer at the end buzzes once more, so one buzz is
        # consumed by the restore step.
        if not self._observe():
            await self._buzz_cycles(n)
            return

        await self._toggle()
        await self.wait_for(False)
        try:
            await self._buzz_cycles(n - 1)
        finally:
            _LOGGER.debug("Restoring buzzer on touch")
            await self._toggle()
            await self.wait_for(True)

    async def _buzz_cycles(self, n: int) -> None:
        for i in range(n):
            _LOGGER.debug("Buzz %d/%d", i + 1, n)
            await self._toggle()
            await self.wait_for(True)
            await self._toggle()
            await self.wait_for(False)

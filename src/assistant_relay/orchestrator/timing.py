from __future__ import annotations

import asyncio


class PollTimer:
    """Fixed-interval wait between run status fetches.

    The wait is an ``asyncio.sleep`` and is cancelled with its task. An interval
    of zero yields control without delaying, which is what tests use.
    """

    def __init__(self, interval_seconds: float) -> None:
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self.interval_seconds = interval_seconds

    async def wait(self) -> None:
        await asyncio.sleep(self.interval_seconds)

    def budget_seconds(self, iterations: int) -> float:
        return self.interval_seconds * iterations

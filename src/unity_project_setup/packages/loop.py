from __future__ import annotations

import asyncio
from typing import Callable

from .reconciler import PackageReconciler, ReconcilerState


Predicate = Callable[[PackageReconciler], bool]


def is_ready(reconciler: PackageReconciler) -> bool:
    return reconciler.state is ReconcilerState.READY


class TickLoop:
    """Drives a reconciler with a fixed tick interval on one asyncio loop."""

    def __init__(self, interval: float = 0.1):
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self.interval = interval

    async def run_until(self, reconciler: PackageReconciler, predicate: Predicate) -> ReconcilerState:
        """Tick until ``predicate`` holds or the session closes.

        Returns:
            ReconcilerState: State the reconciler was left in.
        """

        while True:
            reconciler.tick()
            if reconciler.is_closed or predicate(reconciler):
                return reconciler.state
            await asyncio.sleep(self.interval)

    def run_sync(self, reconciler: PackageReconciler, predicate: Predicate) -> ReconcilerState:
        return asyncio.run(self.run_until(reconciler, predicate))


def wait_ready(reconciler: PackageReconciler, interval: float = 0.1) -> ReconcilerState:
    """Block the caller until the reconciler is ready or closed."""

    return TickLoop(interval).run_sync(reconciler, is_ready)

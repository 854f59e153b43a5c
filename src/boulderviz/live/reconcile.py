"""Fixed-cadence reconciliation of the shared state with built geometry."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from time import perf_counter
from typing import Callable, Optional, Protocol

from ..config import reconcile_hz
from .state_store import StateSnapshot

LOGGER = logging.getLogger(__name__)


class TickAction(str, Enum):
    IDLE = "idle"
    PATCHED = "patched"
    REGENERATED = "regenerated"


class Reconcilable(Protocol):
    def flush_due(self) -> None: ...

    def reconcile(self, snapshot: StateSnapshot) -> TickAction: ...

    def snapshot(self) -> StateSnapshot: ...


class ReconciliationLoop:
    """Polls the store at ``hz`` independent of any render frame rate."""

    def __init__(
        self,
        engine: Reconcilable,
        hz: Optional[float] = None,
        *,
        clock: Callable[[], float] = perf_counter,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.engine = engine
        self.hz = reconcile_hz() if hz is None else max(1e-3, float(hz))
        self._clock = clock
        self._stop = threading.Event()
        self._tick_lock = threading.RLock()
        self._sleep = sleep or self._stop.wait
        self.ticks = 0

    @property
    def period(self) -> float:
        return 1.0 / self.hz

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def tick(self) -> TickAction:
        """Flush due settings, then compare one snapshot against what was built.

        Ticks are serialised with ``stop``; once stopped every tick is idle.
        """

        with self._tick_lock:
            if self._stop.is_set():
                return TickAction.IDLE
            self.engine.flush_due()
            snapshot = self.engine.snapshot()
            action = self.engine.reconcile(snapshot)
            self.ticks += 1
        if action is not TickAction.IDLE:
            LOGGER.debug("tick %d %s version=%d", self.ticks, action.value, snapshot.version)
        return action

    def run(self, duration: Optional[float] = None) -> int:
        """Tick until stopped or ``duration`` seconds elapse; returns ticks run."""

        start = self._clock()
        first = self.ticks
        while not self._stop.is_set():
            anchor = self._clock()
            if duration is not None and anchor - start >= duration:
                break
            self.tick()
            remaining = self.period - (self._clock() - anchor)
            if remaining > 0:
                self._sleep(remaining)
        return self.ticks - first

    def stop(self) -> None:
        """Stop ticking; returns only after any in-flight tick has finished."""

        self._stop.set()
        with self._tick_lock:
            LOGGER.debug("reconciliation loop stopped after %d ticks", self.ticks)


__all__ = ["ReconciliationLoop", "TickAction"]

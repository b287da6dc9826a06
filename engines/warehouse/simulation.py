"""
SpaceFlow Warehouse Engine - Simulation Driver
================================================
Cancellable periodic trigger owned by one InventoryStore.

RULES:
- start() while running is a no-op
- stop() releases the worker and joins it
- set_period() re-times the pending wait from the moment it was armed;
  time already waited counts toward the new period, so repeated speed
  changes never postpone a tick indefinitely
- A failing tick is logged and the driver keeps running
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional


logger = logging.getLogger("spaceflow.simulation")

SIMULATION_SPEEDS = {
    "fast": 1.0,
    "normal": 2.5,
    "slow": 5.0,
}
DEFAULT_PERIOD_S = SIMULATION_SPEEDS["normal"]


def _check_period(period_s: float) -> float:
    if isinstance(period_s, bool) or not isinstance(period_s, (int, float)) or period_s <= 0:
        raise ValueError("period_s must be a positive number.")
    return float(period_s)


class SimulationDriver:
    """One daemon worker thread calling `tick` every `period_s` seconds."""

    def __init__(
        self,
        tick: Callable[[], Any],
        period_s: float = DEFAULT_PERIOD_S,
        name: str = "spaceflow-simulation",
    ):
        self._tick = tick
        self._period_s = _check_period(period_s)
        self._name = name
        self._cond = threading.Condition()
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._run_id = 0
        self._tick_count = 0

    # ── Control ───────────────────────────────────────────────

    def start(self, period_s: Optional[float] = None) -> bool:
        """Start ticking. Returns False when already running."""
        with self._cond:
            if self._running:
                return False
            if period_s is not None:
                self._period_s = _check_period(period_s)
            self._running = True
            self._run_id += 1
            self._thread = threading.Thread(
                target=self._run, args=(self._run_id,), name=self._name, daemon=True,
            )
            self._thread.start()
        logger.info(f"Simulation started (period {self._period_s}s)")
        return True

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Stop ticking. Returns False when it was not running."""
        with self._cond:
            if not self._running:
                return False
            self._running = False
            thread = self._thread
            self._thread = None
            self._cond.notify_all()

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("Simulation stopped")
        return True

    def set_period(self, period_s: float) -> None:
        with self._cond:
            self._period_s = _check_period(period_s)
            self._cond.notify_all()
        logger.info(f"Simulation period set to {self._period_s}s")

    # ── State ─────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def period_s(self) -> float:
        return self._period_s

    @property
    def tick_count(self) -> int:
        return self._tick_count

    # ── Worker ────────────────────────────────────────────────

    def _active(self, run_id: int) -> bool:
        return self._running and self._run_id == run_id

    def _run(self, run_id: int) -> None:
        while True:
            with self._cond:
                if not self._active(run_id):
                    return
                armed_at = time.monotonic()
                while self._active(run_id):
                    remaining = armed_at + self._period_s - time.monotonic()
                    if remaining <= 0:
                        break
                    self._cond.wait(remaining)
                if not self._active(run_id):
                    return

            try:
                self._tick()
                self._tick_count += 1
            except Exception as exc:
                logger.error(f"Simulation tick failed: {exc}", exc_info=True)

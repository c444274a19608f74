"""Debounce and mutual-exclusion rules for regeneration runs."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from .logging import get_logger
from .models import WatchEvent
from .scheduler import Scheduler, TimerHandle


class RegenState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    GENERATING = "generating"


class RegenerationController:
    """Turns change events and interval ticks into at most one in-flight generation.

    ``launch`` is called synchronously with the trigger reason whenever a run
    should start; whoever runs the generation must call
    :meth:`generation_complete` when it finishes, success or not. Triggers that
    arrive while a run is in flight are dropped, never queued. A debounce
    timer may still be armed while generating; if it fires before the run
    completes, that trigger is dropped as well.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        launch: Callable[[str], None],
        *,
        debounce_seconds: float = 1.0,
        is_ignored: Callable[[str], bool] | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.debounce_seconds = debounce_seconds
        self._launch = launch
        self._is_ignored = is_ignored or (lambda path: False)
        self._debounce: Optional[TimerHandle] = None
        self._interval: Optional[TimerHandle] = None
        self._interval_seconds: Optional[float] = None
        self._generating = False
        self.last_event: Optional[WatchEvent] = None
        self.runs_started = 0
        self.dropped_triggers = 0
        self.logger = get_logger("controller")

    @property
    def state(self) -> RegenState:
        if self._generating:
            return RegenState.GENERATING
        if self._debounce is not None:
            return RegenState.DEBOUNCING
        return RegenState.IDLE

    @property
    def debounce_pending(self) -> bool:
        return self._debounce is not None

    def file_changed(self, event: WatchEvent) -> bool:
        """Record a change and (re)arm the debounce timer. Returns False for ignored paths."""
        if self._is_ignored(event.path):
            self.logger.debug("Ignoring change to %s", event.path)
            return False
        self.last_event = event
        if self._debounce is not None:
            self._debounce.cancel()
            self.logger.debug("Debounce re-armed by %s %s", event.kind.value, event.path)
        self._debounce = self.scheduler.call_later(self.debounce_seconds, self.debounce_elapsed)
        return True

    def debounce_elapsed(self) -> bool:
        self._debounce = None
        return self.request("change")

    def interval_elapsed(self) -> bool:
        return self.request("interval")

    def request(self, reason: str) -> bool:
        """Start a run for ``reason`` unless one is already in flight."""
        if self._generating:
            self.dropped_triggers += 1
            self.logger.debug("Generation already in progress; dropping %s trigger", reason)
            return False
        self._generating = True
        self.runs_started += 1
        try:
            self._launch(reason)
        except Exception:
            self._generating = False
            raise
        return True

    def generation_complete(self) -> None:
        self._generating = False

    def start_interval(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError("Interval must be positive")
        self._interval_seconds = seconds
        self._arm_interval()

    def stop(self) -> None:
        """Cancel all timers. An in-flight run is left to finish."""
        for handle in (self._debounce, self._interval):
            if handle is not None:
                handle.cancel()
        self._debounce = None
        self._interval = None
        self._interval_seconds = None

    def _arm_interval(self) -> None:
        if self._interval_seconds is None:
            return
        self._interval = self.scheduler.call_later(self._interval_seconds, self._on_interval)

    def _on_interval(self) -> None:
        self._arm_interval()
        self.interval_elapsed()


__all__ = ["RegenState", "RegenerationController"]

"""Long-press detection for relocating the search center."""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Protocol

from .. import config
from ..models import GeoPoint

_LOGGER = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback once after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class AsyncioScheduler:
    """Schedules on the running event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class PressState(Enum):
    IDLE = "idle"
    ARMED = "armed"


class LongPressGesture:
    """
    Single-contact press held still for `delay` seconds.

    IDLE -> press (one contact) -> ARMED; ARMED -> timer fires -> callback, IDLE;
    ARMED -> move/release/cancel -> IDLE. A press fires at most once.
    """

    def __init__(
        self,
        on_long_press: Callable[[GeoPoint], None],
        delay: float = config.LONG_PRESS_S,
        scheduler: Scheduler | None = None,
    ):
        self.on_long_press = on_long_press
        self.delay = delay
        self.scheduler = scheduler or AsyncioScheduler()
        self.state = PressState.IDLE
        self._point: GeoPoint | None = None
        self._timer: TimerHandle | None = None

    def press(self, point: GeoPoint, contacts: int = 1) -> None:
        self.cancel()
        if contacts != 1:
            return
        self._point = point
        self.state = PressState.ARMED
        self._timer = self.scheduler.call_later(self.delay, self._fire)

    def move(self) -> None:
        self.cancel()

    def release(self) -> None:
        self.cancel()

    def cancel(self) -> None:
        """Disarm; safe to call in any state."""
        if self._timer is not None:
            self._timer.cancel()
        self._reset()

    def _fire(self) -> None:
        if self.state is not PressState.ARMED or self._point is None:
            return
        point = self._point
        self._reset()
        _LOGGER.debug("Long press at %s", point)
        self.on_long_press(point)

    def _reset(self) -> None:
        self.state = PressState.IDLE
        self._point = None
        self._timer = None

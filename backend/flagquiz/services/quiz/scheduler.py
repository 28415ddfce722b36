import heapq
import itertools
import logging
from typing import Callable, List, Tuple


class TimerHandle:
    """A pending one-shot timer. Cancelling it guarantees the callback never runs."""

    def __init__(self, kind, delay: float):
        self.kind = kind
        self.delay = delay
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class SocketIOScheduler:
    """Runs each timer as a Socket.IO background task.

    The worker sleeps for the timer's delay (optionally in heartbeat-sized
    steps that log progress) and fires the callback unless the handle was
    cancelled in the meantime.
    """

    def __init__(self, socketio, logger=None, heartbeat_sec: float = 0, label: str = ''):
        self._socketio = socketio
        self._logger = logger or logging.getLogger(__name__)
        self._heartbeat = heartbeat_sec
        self._label = label

    def schedule(self, kind, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(kind, delay)
        self._logger.info(f"[timer-set] session={self._label} kind={kind.value} delay={delay}s")
        self._socketio.start_background_task(self._worker, handle, callback)
        return handle

    def _worker(self, handle: TimerHandle, callback: Callable[[], None]) -> None:
        hb = self._heartbeat
        if hb and hb > 0:
            slept = 0.0
            while slept < handle.delay and not handle.cancelled:
                step = min(hb, handle.delay - slept)
                self._socketio.sleep(step)
                slept += step
                self._logger.info(
                    f"[timer-heartbeat] session={self._label} kind={handle.kind.value} remaining={max(0.0, handle.delay - slept)}s"
                )
        else:
            self._socketio.sleep(handle.delay)
        if handle.cancelled:
            self._logger.info(f"[timer-abort] session={self._label} kind={handle.kind.value} cancelled")
            return
        handle.fired = True
        self._logger.info(f"[timer-fire] session={self._label} kind={handle.kind.value}")
        callback()


class ManualScheduler:
    """Virtual-clock scheduler. Timers only fire when `advance` moves time past them.

    Used in TESTING so countdowns and feedback windows are deterministic.
    """

    _EPSILON = 1e-9

    def __init__(self):
        self.now = 0.0
        self._seq = itertools.count()
        self._pending: List[Tuple[float, int, TimerHandle, Callable[[], None]]] = []

    def schedule(self, kind, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(kind, delay)
        heapq.heappush(self._pending, (self.now + delay, next(self._seq), handle, callback))
        return handle

    def pending(self) -> List[TimerHandle]:
        return [h for _, _, h, _ in sorted(self._pending) if h.active]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in deadline order.

        Timers armed by a callback fire in the same call if they fall due
        before the target time.
        """
        target = self.now + seconds
        while self._pending and self._pending[0][0] <= target + self._EPSILON:
            due, _, handle, callback = heapq.heappop(self._pending)
            if not handle.active:
                continue
            self.now = max(self.now, due)
            handle.fired = True
            callback()
        self.now = target

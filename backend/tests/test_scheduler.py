import logging
import threading

from flagquiz.services.quiz.machine import TimerKind
from flagquiz.services.quiz.scheduler import ManualScheduler, SocketIOScheduler


class FakeSocketIO:
    """Runs background tasks on threads; sleep waits on a gate the test opens."""

    def __init__(self, on_sleep=None):
        self.gate = threading.Event()
        self.sleeps = []
        self.threads = []
        self.on_sleep = on_sleep

    def start_background_task(self, target, *args):
        thread = threading.Thread(target=target, args=args, daemon=True)
        self.threads.append(thread)
        thread.start()
        return thread

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        if self.on_sleep:
            self.on_sleep()
        self.gate.wait(2)

    def join(self):
        for thread in self.threads:
            thread.join(2)


def test_uncancelled_timer_fires_once():
    fake = FakeSocketIO()
    calls = []
    handle = SocketIOScheduler(fake, label='T1').schedule(TimerKind.TICK, 1, lambda: calls.append(1))
    assert handle.active
    fake.gate.set()
    fake.join()
    assert calls == [1]
    assert handle.fired
    assert not handle.active
    assert fake.sleeps == [1]


def test_cancelled_timer_never_fires(caplog):
    fake = FakeSocketIO()
    calls = []
    handle = SocketIOScheduler(fake, label='T2').schedule(TimerKind.FEEDBACK_EXPIRE, 3.2, lambda: calls.append(1))
    handle.cancel()
    with caplog.at_level(logging.INFO):
        fake.gate.set()
        fake.join()
    assert calls == []
    assert not handle.fired
    assert '[timer-abort] session=T2 kind=feedback_expire' in caplog.text


def test_heartbeat_stops_early_on_cancel(caplog):
    holder = {}
    fake = FakeSocketIO(on_sleep=lambda: holder['handle'].cancel())
    fake.gate.set()
    calls = []
    scheduler = SocketIOScheduler(fake, heartbeat_sec=1, label='T3')
    with caplog.at_level(logging.INFO):
        holder['handle'] = scheduler.schedule(TimerKind.TICK, 5, lambda: calls.append(1))
        fake.join()
    assert fake.sleeps == [1]
    assert calls == []
    assert not holder['handle'].fired
    assert caplog.text.count('[timer-heartbeat]') == 1


def test_heartbeat_sleeps_in_steps():
    fake = FakeSocketIO()
    fake.gate.set()
    calls = []
    handle = SocketIOScheduler(fake, heartbeat_sec=2).schedule(TimerKind.TICK, 5, lambda: calls.append(1))
    fake.join()
    assert fake.sleeps == [2, 2, 1]
    assert calls == [1]
    assert handle.fired


def test_manual_scheduler_fires_in_deadline_order():
    scheduler = ManualScheduler()
    order = []
    scheduler.schedule(TimerKind.FEEDBACK_EXPIRE, 3.2, lambda: order.append('feedback'))
    scheduler.schedule(TimerKind.TICK, 1, lambda: order.append('tick'))
    skipped = scheduler.schedule(TimerKind.TICK, 2, lambda: order.append('never'))
    skipped.cancel()
    scheduler.advance(3.2)
    assert order == ['tick', 'feedback']
    assert scheduler.pending() == []
    assert scheduler.now == 3.2

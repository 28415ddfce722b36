import logging
import random
import threading
from functools import partial
from typing import Callable, Dict, Optional

from .machine import (
    Abort,
    CancelEffect,
    FeedbackExpired,
    InvalidTransition,
    Restart,
    ScheduledEffect,
    SelectMode,
    SessionState,
    SetLanguage,
    SubmitAnswer,
    Tick,
    TIMER_EVENTS,
    TimerKind,
    TogglePause,
    UpdateDraft,
    check,
    transition,
)
from .records import DatasetProvider, Language, Mode, Phase, round_count
from .rounds import build_round_queue


class QuizEngine:
    """Owns one quiz session and drives it through the state machine.

    Player input and timer callbacks both go through `dispatch`, which
    serializes them under a lock: each call reads the latest state, applies
    one transition and carries out the resulting timer effects before the
    next call is let in.
    """

    def __init__(
        self,
        dataset: DatasetProvider,
        scheduler,
        rng: Optional[random.Random] = None,
        language: Language = Language.SPANISH,
        on_change: Optional[Callable[[dict], None]] = None,
        logger: Optional[logging.Logger] = None,
        strict: bool = False,
        label: str = '',
    ):
        self.dataset = dataset
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.on_change = on_change
        self.logger = logger or logging.getLogger(__name__)
        self.strict = strict
        self.label = label
        self.state = SessionState(language=Language(language))
        self._handles: Dict[TimerKind, object] = {}
        # Bumped on every applied transition; clients drop pushes older than what they hold
        self.version = 0
        self._lock = threading.Lock()

    # ---- Operations ----

    def select_mode(self, mode) -> SessionState:
        mode = Mode(mode)
        count = round_count(mode, self.dataset.length())
        queue = build_round_queue(self.dataset.get_all(), count, self.rng)
        return self.dispatch(SelectMode(mode=mode, queue=queue))

    def set_language(self, language) -> SessionState:
        return self.dispatch(SetLanguage(Language(language)))

    def update_draft(self, text: str) -> SessionState:
        return self.dispatch(UpdateDraft(text or ''))

    def submit_answer(self, text: str) -> SessionState:
        return self.dispatch(SubmitAnswer(text or ''))

    def toggle_pause(self) -> SessionState:
        return self.dispatch(TogglePause())

    def abort(self) -> SessionState:
        return self.dispatch(Abort())

    def restart(self) -> SessionState:
        return self.dispatch(Restart())

    def snapshot(self) -> dict:
        payload = self.state.to_dict()
        payload['version'] = self.version
        return payload

    def close(self) -> None:
        """Cancel every pending timer, e.g. when the session is discarded."""
        with self._lock:
            for handle in self._handles.values():
                handle.cancel()
            self._handles.clear()

    # ---- Event loop plumbing ----

    def dispatch(self, event) -> SessionState:
        with self._lock:
            reason = check(self.state, event)
            if reason is not None:
                if isinstance(event, TIMER_EVENTS):
                    self.logger.debug(f"[timer-stale] session={self.label} event={type(event).__name__} reason={reason}")
                    return self.state
                self.logger.info(f"[transition-ignored] session={self.label} event={type(event).__name__} reason={reason}")
                if self.strict:
                    raise InvalidTransition(reason)
                return self.state
            previous = self.state
            self.state, effects = transition(previous, event)
            for effect in effects:
                self._apply(effect)
            self._log_progress(previous, self.state, event)
            self.version += 1
            # Notify before releasing the lock so pushes arrive in transition order
            if self.on_change:
                self.on_change(self.snapshot())
            return self.state

    def _apply(self, effect) -> None:
        if isinstance(effect, CancelEffect):
            handle = self._handles.pop(effect.kind, None)
            if handle is not None and handle.active:
                handle.cancel()
                self.logger.debug(f"[timer-cancel] session={self.label} kind={effect.kind.value}")
            return
        if isinstance(effect, ScheduledEffect):
            stale = self._handles.pop(effect.kind, None)
            if stale is not None:
                stale.cancel()
            event_cls = Tick if effect.kind == TimerKind.TICK else FeedbackExpired
            callback = partial(self.dispatch, event_cls(effect.token))
            self._handles[effect.kind] = self.scheduler.schedule(effect.kind, effect.delay, callback)

    def _log_progress(self, previous: SessionState, current: SessionState, event) -> None:
        started = current.round is not None and current.round.feedback is None
        if started and (previous.round is None or previous.round.feedback is not None):
            done = current.tally.rounds_completed
            self.logger.info(
                f"[round-start] session={self.label} round={done + 1}/{current.rounds_total} code={current.round.country.code}"
            )
        if isinstance(event, SubmitAnswer) and current.round is not None and current.round.feedback is not None:
            self.logger.info(
                f"[answer] session={self.label} outcome={current.round.feedback.outcome.value} score={current.tally.score}"
            )
        if isinstance(event, Tick) and current.round is not None and current.round.feedback is not None:
            self.logger.info(f"[timeout] session={self.label} code={current.round.country.code}")
        if current.phase == Phase.FINISHED and previous.phase != Phase.FINISHED:
            t = current.tally
            self.logger.info(
                f"[finish] session={self.label} score={t.score} correct={t.correct_count} errors={t.error_count}"
            )

"""Round/session state machine as a pure transition function.

`transition(state, event)` returns the next `SessionState` plus a list of
timer effects for the host runtime to carry out. The function never
touches clocks or threads: the runtime arms the timers it is told to arm
and feeds `Tick` / `FeedbackExpired` back in when they fire.

Every armed timer is stamped with `SessionState.timer_token`. Any
transition that invalidates pending timers bumps the token, so a timer
event carrying an old token is rejected even if its cancellation lost a
race with the callback.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple, Union

from .aggregator import Tally
from .matching import AcceptedNames, is_correct
from .records import (
    CountryRecord,
    FEEDBACK_DURATION_SEC,
    Language,
    Mode,
    Outcome,
    Phase,
    ROUND_DURATION_SEC,
    TICK_INTERVAL_SEC,
)
from .scoring import points


class InvalidTransition(Exception):
    """An operation was invoked in a state that forbids it."""


class TimerKind(str, Enum):
    TICK = 'tick'
    FEEDBACK_EXPIRE = 'feedback_expire'


@dataclass(frozen=True)
class ScheduledEffect:
    kind: TimerKind
    delay: float
    token: int


@dataclass(frozen=True)
class CancelEffect:
    kind: TimerKind


Effect = Union[ScheduledEffect, CancelEffect]


@dataclass(frozen=True)
class Feedback:
    outcome: Outcome
    revealed_name: str

    def to_dict(self):
        return {'outcome': self.outcome.value, 'revealed_name': self.revealed_name}


@dataclass(frozen=True)
class RoundState:
    country: CountryRecord
    seconds_remaining: int = ROUND_DURATION_SEC
    paused: bool = False
    feedback: Optional[Feedback] = None
    draft: str = ''

    def to_dict(self):
        # Names stay hidden until feedback reveals them
        return {
            'code': self.country.code,
            'seconds_remaining': self.seconds_remaining,
            'paused': self.paused,
            'draft': self.draft,
            'feedback': self.feedback.to_dict() if self.feedback else None,
        }


@dataclass(frozen=True)
class SessionState:
    phase: Phase = Phase.MENU
    mode: Optional[Mode] = None
    language: Language = Language.SPANISH
    tally: Tally = field(default_factory=Tally)
    queue: Tuple[CountryRecord, ...] = ()
    round: Optional[RoundState] = None
    rounds_total: int = 0
    timer_token: int = 0

    @property
    def status(self) -> str:
        """Fine-grained machine state: idle, countdown, awaiting_feedback or finished."""
        if self.phase == Phase.MENU:
            return 'idle'
        if self.phase == Phase.FINISHED:
            return 'finished'
        if self.round is None:
            return 'idle'
        if self.round.feedback is not None:
            return 'awaiting_feedback'
        return 'countdown'

    def to_dict(self):
        return {
            'phase': self.phase.value,
            'status': self.status,
            'mode': self.mode.value if self.mode else None,
            'language': self.language.value,
            'score': self.tally.score,
            'correct_count': self.tally.correct_count,
            'error_count': self.tally.error_count,
            'rounds_completed': self.tally.rounds_completed,
            'rounds_total': self.rounds_total,
            'rounds_remaining': len(self.queue),
            'round': self.round.to_dict() if self.round else None,
            'results': self.tally.to_dict() if self.phase == Phase.FINISHED else None,
        }


# ---- Events ----

@dataclass(frozen=True)
class SelectMode:
    mode: Mode
    queue: Tuple[CountryRecord, ...]


@dataclass(frozen=True)
class SetLanguage:
    language: Language


@dataclass(frozen=True)
class UpdateDraft:
    text: str


@dataclass(frozen=True)
class SubmitAnswer:
    text: str


@dataclass(frozen=True)
class TogglePause:
    pass


@dataclass(frozen=True)
class Tick:
    token: int


@dataclass(frozen=True)
class FeedbackExpired:
    token: int


@dataclass(frozen=True)
class Abort:
    pass


@dataclass(frozen=True)
class Restart:
    pass


Event = Union[SelectMode, SetLanguage, UpdateDraft, SubmitAnswer, TogglePause,
              Tick, FeedbackExpired, Abort, Restart]
TIMER_EVENTS = (Tick, FeedbackExpired)


def _accepting_input(state: SessionState) -> Optional[str]:
    if state.phase != Phase.PLAYING or state.round is None:
        return 'no round in progress'
    if state.round.feedback is not None:
        return 'feedback is showing'
    if state.round.paused:
        return 'round is paused'
    return None


def check(state: SessionState, event: Event) -> Optional[str]:
    """Return why `event` is not allowed in `state`, or None if it is."""
    if isinstance(event, SelectMode):
        return None if state.phase == Phase.MENU else 'mode can only be selected from the menu'
    if isinstance(event, SetLanguage):
        return None
    if isinstance(event, (SubmitAnswer, UpdateDraft)):
        return _accepting_input(state)
    if isinstance(event, TogglePause):
        if state.phase != Phase.PLAYING or state.round is None:
            return 'no round in progress'
        if state.round.feedback is not None:
            return 'feedback is showing'
        return None
    if isinstance(event, Tick):
        if event.token != state.timer_token:
            return 'stale tick'
        return _accepting_input(state)
    if isinstance(event, FeedbackExpired):
        if event.token != state.timer_token:
            return 'stale feedback timer'
        if state.round is None or state.round.feedback is None:
            return 'no feedback is showing'
        return None
    if isinstance(event, Abort):
        return None if state.phase == Phase.PLAYING else 'nothing to abort'
    if isinstance(event, Restart):
        return None if state.phase == Phase.FINISHED else 'session has not finished'
    return f'unknown event {type(event).__name__}'


def _cancel_all() -> List[Effect]:
    return [CancelEffect(TimerKind.TICK), CancelEffect(TimerKind.FEEDBACK_EXPIRE)]


def start_round(state: SessionState, record: CountryRecord) -> Tuple[SessionState, List[Effect]]:
    """Make `record` the live round with a full clock and arm the first tick."""
    if state.round is not None and state.round.feedback is not None:
        return state, []
    token = state.timer_token + 1
    nxt = replace(state, round=RoundState(country=record), timer_token=token)
    return nxt, [
        CancelEffect(TimerKind.FEEDBACK_EXPIRE),
        ScheduledEffect(TimerKind.TICK, TICK_INTERVAL_SEC, token),
    ]


def _advance(state: SessionState) -> Tuple[SessionState, List[Effect]]:
    # Drop the finished round first so start_round sees no feedback
    state = replace(state, round=None)
    if not state.queue:
        finished = replace(state, phase=Phase.FINISHED, timer_token=state.timer_token + 1)
        return finished, _cancel_all()
    record, rest = state.queue[0], state.queue[1:]
    return start_round(replace(state, queue=rest), record)


def _conclude(state: SessionState, outcome: Outcome, awarded: int = 0) -> Tuple[SessionState, List[Effect]]:
    country = state.round.country
    token = state.timer_token + 1
    feedback = Feedback(outcome=outcome, revealed_name=country.name_for(state.language))
    nxt = replace(
        state,
        tally=state.tally.record(outcome, awarded),
        round=replace(state.round, feedback=feedback),
        timer_token=token,
    )
    return nxt, [
        CancelEffect(TimerKind.TICK),
        ScheduledEffect(TimerKind.FEEDBACK_EXPIRE, FEEDBACK_DURATION_SEC, token),
    ]


def transition(state: SessionState, event: Event) -> Tuple[SessionState, List[Effect]]:
    """Apply one event. Disallowed events leave the state untouched."""
    if check(state, event) is not None:
        return state, []

    if isinstance(event, SelectMode):
        fresh = SessionState(
            phase=Phase.PLAYING,
            mode=Mode(event.mode),
            language=state.language,
            queue=tuple(event.queue),
            rounds_total=len(event.queue),
            timer_token=state.timer_token,
        )
        return _advance(fresh)

    if isinstance(event, SetLanguage):
        return replace(state, language=Language(event.language)), []

    if isinstance(event, UpdateDraft):
        return replace(state, round=replace(state.round, draft=event.text)), []

    if isinstance(event, SubmitAnswer):
        country = state.round.country
        accepted = AcceptedNames(
            primary=country.name_for(state.language),
            alternate=country.alternate_for(state.language),
        )
        state = replace(state, round=replace(state.round, draft=event.text))
        if is_correct(event.text, accepted):
            return _conclude(state, Outcome.SUCCESS, points(state.round.seconds_remaining))
        return _conclude(state, Outcome.ERROR)

    if isinstance(event, TogglePause):
        token = state.timer_token + 1
        if state.round.paused:
            resumed = replace(state, round=replace(state.round, paused=False), timer_token=token)
            return resumed, [ScheduledEffect(TimerKind.TICK, TICK_INTERVAL_SEC, token)]
        paused = replace(state, round=replace(state.round, paused=True), timer_token=token)
        return paused, [CancelEffect(TimerKind.TICK)]

    if isinstance(event, Tick):
        remaining = max(0, state.round.seconds_remaining - 1)
        state = replace(state, round=replace(state.round, seconds_remaining=remaining))
        if remaining == 0:
            return _conclude(state, Outcome.TIMEOUT)
        token = state.timer_token + 1
        return replace(state, timer_token=token), [ScheduledEffect(TimerKind.TICK, TICK_INTERVAL_SEC, token)]

    if isinstance(event, FeedbackExpired):
        return _advance(state)

    # Abort and Restart both land back on the menu with a fresh session
    menu = SessionState(language=state.language, timer_token=state.timer_token + 1)
    return menu, _cancel_all()

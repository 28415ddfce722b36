import random
import string
import threading
import time
from typing import Dict, Optional, Set

from flagquiz import socketio
from flagquiz.dataset import CountryDataset
from flagquiz.services.quiz import Language, QuizEngine
from flagquiz.services.quiz.records import Phase
from flagquiz.services.quiz.scheduler import ManualScheduler, SocketIOScheduler


def room_for(session_code: str) -> str:
    return f"quiz:{session_code.upper()}"


def _normalize_code(code) -> Optional[str]:
    if not isinstance(code, str) or not code:
        return None
    return code.upper()


class SessionRegistry:
    """Live quiz sessions keyed by a short session code.

    Sessions live only in memory. A session ends when it is deleted, when
    its last connected socket has been gone for the grace period, or when
    it sits in the menu or on the final screen longer than
    SESSION_IDLE_SEC (swept whenever a new session is created).
    """

    def __init__(self, app):
        self.app = app
        self._engines: Dict[str, QuizEngine] = {}
        self._last_active: Dict[str, float] = {}
        self._members: Dict[str, Set[str]] = {}
        self._sid_to_code: Dict[str, str] = {}
        self._end_deadline: Dict[str, float] = {}
        self._dataset: Optional[CountryDataset] = None
        self._lock = threading.Lock()

    @property
    def dataset(self) -> CountryDataset:
        if self._dataset is None:
            source = self.app.config.get('COUNTRY_SOURCE', 'file')
            if source == 'database':
                with self.app.app_context():
                    self._dataset = CountryDataset.from_database()
            else:
                self._dataset = CountryDataset.from_json(self.app.config['COUNTRIES_FILE'])
            self.app.logger.info(f"[dataset-load] source={source} countries={self._dataset.length()}")
        return self._dataset

    def _generate_code(self, length=4) -> str:
        """Generate a unique, short session code."""
        while True:
            code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
            if code not in self._engines:
                return code

    def _make_scheduler(self, code: str):
        cfg = self.app.config
        if cfg.get('TESTING') and not cfg.get('ENABLE_SCHEDULER_IN_TESTS'):
            return ManualScheduler()
        return SocketIOScheduler(
            socketio,
            logger=self.app.logger,
            heartbeat_sec=int(cfg.get('TIMER_HEARTBEAT_SEC', 0)),
            label=code,
        )

    def create(self, language=Language.SPANISH) -> str:
        dataset = self.dataset
        self.prune_idle()
        with self._lock:
            code = self._generate_code()

            def _push(payload, _code=code):
                self._last_active[_code] = time.monotonic()
                socketio.emit('state_update', dict(payload, session_code=_code), to=room_for(_code), namespace='/ws')

            self._engines[code] = QuizEngine(
                dataset,
                self._make_scheduler(code),
                language=Language(language),
                on_change=_push,
                logger=self.app.logger,
                strict=bool(self.app.config.get('STRICT_TRANSITIONS')),
                label=code,
            )
            self._last_active[code] = time.monotonic()
        self.app.logger.info(f"[session-create] session={code} language={Language(language).value}")
        return code

    def get(self, code) -> Optional[QuizEngine]:
        code = _normalize_code(code)
        return self._engines.get(code) if code else None

    def remove(self, code) -> bool:
        code = _normalize_code(code)
        if code is None:
            return False
        with self._lock:
            engine = self._engines.pop(code, None)
            self._last_active.pop(code, None)
            self._end_deadline.pop(code, None)
            for sid in self._members.pop(code, set()):
                self._sid_to_code.pop(sid, None)
        if engine is None:
            return False
        engine.close()
        self.app.logger.info(f"[session-end] session={code}")
        return True

    def prune_idle(self) -> int:
        """End sessions left in the menu or on the final screen for too long."""
        max_idle = float(self.app.config.get('SESSION_IDLE_SEC', 900))
        now = time.monotonic()
        stale = [
            code for code, engine in list(self._engines.items())
            if engine.state.phase in (Phase.MENU, Phase.FINISHED)
            and now - self._last_active.get(code, now) >= max_idle
        ]
        for code in stale:
            self.app.logger.info(f"[session-idle] session={code}")
            self.remove(code)
        return len(stale)

    # ---- Socket membership ----

    def attach(self, sid: str, code: str) -> None:
        code = code.upper()
        with self._lock:
            previous = self._sid_to_code.get(sid)
            if previous and previous != code:
                self._members.get(previous, set()).discard(sid)
            self._sid_to_code[sid] = code
            self._members.setdefault(code, set()).add(sid)
            # A returning client cancels any pending end
            self._end_deadline.pop(code, None)

    def detach(self, sid: str, code: Optional[str] = None) -> Optional[str]:
        """Forget a socket. Returns its session code if no sockets remain there.

        With `code`, only a socket attached to that session is forgotten.
        """
        with self._lock:
            current = self._sid_to_code.get(sid)
            if current is None or (code is not None and current != code.upper()):
                return None
            code = self._sid_to_code.pop(sid)
            members = self._members.get(code, set())
            members.discard(sid)
            return code if not members else None

    def member_count(self, code: str) -> int:
        return len(self._members.get(code.upper(), set()))

    def mark_end_deadline(self, code: str, deadline: float) -> None:
        self._end_deadline[code.upper()] = deadline

    def end_deadline(self, code: str) -> Optional[float]:
        return self._end_deadline.get(code.upper())

    def __len__(self):
        return len(self._engines)

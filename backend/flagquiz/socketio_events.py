from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from flagquiz.services.quiz import InvalidTransition
from flagquiz.sessions import room_for
import time


def _registry():
    return current_app.extensions['quiz_sessions']


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _session_code(data):
    session_code = (data or {}).get('session_code')
    if not session_code:
        emit('error', {'message': 'session_code is required'})
        return None
    if not isinstance(session_code, str):
        emit('error', {'message': 'session_code must be a string'})
        return None
    return session_code.upper()


def _engine_for(data):
    code = _session_code(data)
    if code is None:
        return None, None
    engine = _registry().get(code)
    if engine is None:
        emit('error', {'message': 'Session not found'})
        return None, None
    return code, engine


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    # Last socket gone: end the session once the grace period passes
    code = _registry().detach(_get_sid())
    if not code:
        return
    app = current_app._get_current_object()
    grace = float(app.config.get('SESSION_GRACE_SEC', 30))
    if grace <= 0:
        _end_session(app, code)
        return
    _schedule_end_if_empty(app, code, grace)


def handle_join_session(data):
    code, engine = _engine_for(data)
    if engine is None:
        return
    room = room_for(code)
    join_room(room)
    _registry().attach(_get_sid(), code)
    emit('joined', {'room': room, 'state': dict(engine.snapshot(), session_code=code)})


def handle_leave_session(data):
    code = _session_code(data)
    if code is None:
        return
    # Explicit quit by the last client: end immediately
    if _registry().detach(_get_sid(), code):
        _end_session(current_app._get_current_object(), code)
    room = room_for(code)
    leave_room(room)
    emit('left', {'room': room})


def handle_submit_answer(data):
    code, engine = _engine_for(data)
    if engine is None:
        return
    try:
        engine.submit_answer(str((data or {}).get('answer') or ''))
    except InvalidTransition as exc:
        emit('error', {'message': str(exc)})


def handle_toggle_pause(data):
    code, engine = _engine_for(data)
    if engine is None:
        return
    try:
        engine.toggle_pause()
    except InvalidTransition as exc:
        emit('error', {'message': str(exc)})


def handle_ping(data):
    emit('pong', data or {})


# ---- Session lifecycle helpers ----

def _end_session(app, code: str) -> None:
    """Notify clients and drop the session with its pending timers."""
    from flagquiz import socketio
    socketio.emit('session_ended', {'session_code': code}, to=room_for(code), namespace='/ws')
    app.extensions['quiz_sessions'].remove(code)


def _schedule_end_if_empty(app, code: str, delay_sec: float) -> None:
    from flagquiz import socketio
    registry = app.extensions['quiz_sessions']
    if registry.member_count(code) > 0:
        return
    deadline = time.time() + delay_sec
    registry.mark_end_deadline(code, deadline)
    app.logger.info(f"[session-grace] session={code} delay={delay_sec}s")

    def _runner(session_code: str, expected: float):
        socketio.sleep(max(0.0, expected - time.time()))
        if registry.member_count(session_code) == 0 and registry.end_deadline(session_code) == expected:
            _end_session(app, session_code)

    socketio.start_background_task(_runner, code, deadline)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from flagquiz import socketio

    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_session': handle_join_session,
        'leave_session': handle_leave_session,
        'submit_answer': handle_submit_answer,
        'toggle_pause': handle_toggle_pause,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for name, handler in handlers.items():
            socketio.on_event(name, handler, namespace=namespace)

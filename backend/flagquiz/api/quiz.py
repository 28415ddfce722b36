from flask import Blueprint, jsonify, request, current_app, abort
from flagquiz.services.quiz import (
    FEEDBACK_DURATION_SEC,
    InvalidTransition,
    Language,
    Mode,
    MODE_COUNTS,
    ROUND_DURATION_SEC,
    TICK_INTERVAL_SEC,
)
from flagquiz.services.quiz.records import round_count


quiz = Blueprint('quiz', __name__)

LANGUAGES = {lang.value for lang in Language}
MODES = [mode.value for mode in Mode]


def _registry():
    return current_app.extensions['quiz_sessions']


def _engine_or_404(session_code):
    engine = _registry().get(session_code)
    if engine is None:
        abort(404)
    return engine


def _state_payload(session_code, engine):
    payload = engine.snapshot()
    payload['session_code'] = session_code.upper()
    # Include timings so clients can show countdowns
    payload['durations'] = {
        'round': ROUND_DURATION_SEC,
        'tick': TICK_INTERVAL_SEC,
        'feedback': FEEDBACK_DURATION_SEC,
    }
    return payload


def _run(session_code, operation, *args):
    engine = _engine_or_404(session_code)
    try:
        operation(engine, *args)
    except InvalidTransition as exc:
        return jsonify({'error': str(exc), 'state': _state_payload(session_code, engine)}), 409
    return jsonify(_state_payload(session_code, engine))


@quiz.errorhandler(404)
def session_not_found(_exc):
    return jsonify({'error': 'Session not found'}), 404


@quiz.route('/modes', methods=['GET'])
def list_modes():
    size = _registry().dataset.length()
    return jsonify({
        'modes': [
            {'mode': mode.value, 'requested': MODE_COUNTS[mode], 'rounds': round_count(mode, size)}
            for mode in Mode
        ],
        'dataset_size': size,
        # Continent-filtered play is announced but not implemented
        'coming_soon': ['continents'],
    })


@quiz.route('/sessions', methods=['POST'])
def create_session():
    data = request.get_json(silent=True) or {}
    language = data.get('language') or Language.SPANISH.value
    if not isinstance(language, str) or language not in LANGUAGES:
        return jsonify({'error': f'language must be one of {sorted(LANGUAGES)}'}), 400
    code = _registry().create(language=Language(language))
    return jsonify(_state_payload(code, _registry().get(code))), 201


@quiz.route('/<string:session_code>/state', methods=['GET'])
def get_state(session_code):
    return jsonify(_state_payload(session_code, _engine_or_404(session_code)))


@quiz.route('/<string:session_code>/start', methods=['POST'])
def start_session(session_code):
    data = request.get_json(silent=True) or {}
    mode = data.get('mode')
    if not mode:
        return jsonify({'error': 'mode is required'}), 400
    if not isinstance(mode, str) or mode not in MODES:
        return jsonify({'error': f'mode must be one of {MODES}'}), 400
    return _run(session_code, lambda engine: engine.select_mode(Mode(mode)))


@quiz.route('/<string:session_code>/answer', methods=['POST'])
def submit_answer(session_code):
    data = request.get_json(silent=True) or {}
    answer = data.get('answer')
    if answer is None:
        return jsonify({'error': 'answer is required'}), 400
    return _run(session_code, lambda engine: engine.submit_answer(str(answer)))


@quiz.route('/<string:session_code>/draft', methods=['POST'])
def update_draft(session_code):
    data = request.get_json(silent=True) or {}
    return _run(session_code, lambda engine: engine.update_draft(str(data.get('text') or '')))


@quiz.route('/<string:session_code>/pause', methods=['POST'])
def toggle_pause(session_code):
    return _run(session_code, lambda engine: engine.toggle_pause())


@quiz.route('/<string:session_code>/language', methods=['POST'])
def set_language(session_code):
    data = request.get_json(silent=True) or {}
    language = data.get('language')
    if not isinstance(language, str) or language not in LANGUAGES:
        return jsonify({'error': f'language must be one of {sorted(LANGUAGES)}'}), 400
    return _run(session_code, lambda engine: engine.set_language(Language(language)))


@quiz.route('/<string:session_code>/abort', methods=['POST'])
def abort_session(session_code):
    return _run(session_code, lambda engine: engine.abort())


@quiz.route('/<string:session_code>/restart', methods=['POST'])
def restart_session(session_code):
    return _run(session_code, lambda engine: engine.restart())


@quiz.route('/<string:session_code>', methods=['DELETE'])
def end_session(session_code):
    if not _registry().remove(session_code):
        return jsonify({'error': 'Session not found'}), 404
    return jsonify({'message': f'Session {session_code.upper()} ended'})

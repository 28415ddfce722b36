from flagquiz.services.quiz import FEEDBACK_DURATION_SEC, ROUND_DURATION_SEC


def _create(client, language='en'):
    res = client.post('/api/quiz/sessions', json={'language': language})
    assert res.status_code == 201
    return res.get_json()


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_list_modes(client):
    data = client.get('/api/quiz/modes').get_json()
    rounds = {m['mode']: m['rounds'] for m in data['modes']}
    assert rounds['easy'] == 20
    assert rounds['medium'] == 50
    assert rounds['hard'] == 100
    assert rounds['expert'] == data['dataset_size']
    assert data['coming_soon'] == ['continents']


def test_create_session_and_state(client):
    created = _create(client)
    code = created['session_code']
    assert created['phase'] == 'menu'
    assert created['language'] == 'en'
    res = client.get(f'/api/quiz/{code}/state')
    assert res.status_code == 200
    state = res.get_json()
    assert state['status'] == 'idle'
    assert state['durations'] == {'round': ROUND_DURATION_SEC, 'tick': 1, 'feedback': FEEDBACK_DURATION_SEC}
    # Codes are case-insensitive
    assert client.get(f'/api/quiz/{code.lower()}/state').status_code == 200


def test_unknown_session_404(client):
    res = client.get('/api/quiz/ZZZZZ/state')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'Session not found'


def test_validation_errors(client):
    assert client.post('/api/quiz/sessions', json={'language': 'fr'}).status_code == 400
    code = _create(client)['session_code']
    assert client.post(f'/api/quiz/{code}/start', json={}).status_code == 400
    assert client.post(f'/api/quiz/{code}/start', json={'mode': 'continents'}).status_code == 400
    assert client.post(f'/api/quiz/{code}/answer', json={}).status_code == 400
    assert client.post(f'/api/quiz/{code}/language', json={'language': 'de'}).status_code == 400


def test_play_round_flow(client, registry):
    code = _create(client)['session_code']
    started = client.post(f'/api/quiz/{code}/start', json={'mode': 'easy'}).get_json()
    assert started['phase'] == 'playing'
    assert started['rounds_total'] == 20
    assert started['rounds_remaining'] == 19
    assert started['round']['seconds_remaining'] == ROUND_DURATION_SEC

    engine = registry.get(code)
    engine.scheduler.advance(2)
    country = engine.state.round.country
    answered = client.post(f'/api/quiz/{code}/answer', json={'answer': country.name_en.lower()}).get_json()
    assert answered['score'] == 5
    assert answered['correct_count'] == 1
    assert answered['status'] == 'awaiting_feedback'
    assert answered['round']['feedback'] == {'outcome': 'success', 'revealed_name': country.name_en}

    # Answering again during feedback is a silent no-op
    again = client.post(f'/api/quiz/{code}/answer', json={'answer': 'x'})
    assert again.status_code == 200
    assert again.get_json()['correct_count'] == 1

    engine.scheduler.advance(FEEDBACK_DURATION_SEC)
    state = client.get(f'/api/quiz/{code}/state').get_json()
    assert state['round']['feedback'] is None
    assert state['round']['code'] != country.code
    assert state['rounds_completed'] == 1


def test_pause_draft_and_language(client, registry):
    code = _create(client, language='es')['session_code']
    client.post(f'/api/quiz/{code}/start', json={'mode': 'easy'})
    drafted = client.post(f'/api/quiz/{code}/draft', json={'text': 'Arg'}).get_json()
    assert drafted['round']['draft'] == 'Arg'
    paused = client.post(f'/api/quiz/{code}/pause').get_json()
    assert paused['round']['paused'] is True
    registry.get(code).scheduler.advance(5)
    assert client.get(f'/api/quiz/{code}/state').get_json()['round']['seconds_remaining'] == ROUND_DURATION_SEC
    resumed = client.post(f'/api/quiz/{code}/pause').get_json()
    assert resumed['round']['paused'] is False
    switched = client.post(f'/api/quiz/{code}/language', json={'language': 'en'}).get_json()
    assert switched['language'] == 'en'


def test_abort_restart_and_end(client, registry):
    code = _create(client)['session_code']
    client.post(f'/api/quiz/{code}/start', json={'mode': 'easy'})
    aborted = client.post(f'/api/quiz/{code}/abort').get_json()
    assert aborted['phase'] == 'menu'
    assert aborted['round'] is None
    # Restart only applies to a finished session
    assert client.post(f'/api/quiz/{code}/restart').get_json()['phase'] == 'menu'

    res = client.delete(f'/api/quiz/{code}')
    assert res.status_code == 200
    assert registry.get(code) is None
    assert client.delete(f'/api/quiz/{code}').status_code == 404


def test_strict_transitions_return_conflict(client, flask_app):
    flask_app.config['STRICT_TRANSITIONS'] = True
    code = _create(client)['session_code']
    res = client.post(f'/api/quiz/{code}/pause')
    assert res.status_code == 409
    assert res.get_json()['state']['phase'] == 'menu'


def test_non_string_choices_rejected(client):
    assert client.post('/api/quiz/sessions', json={'language': ['en']}).status_code == 400
    assert client.post('/api/quiz/sessions', json={'language': {'en': 1}}).status_code == 400
    code = _create(client)['session_code']
    assert client.post(f'/api/quiz/{code}/language', json={'language': ['en']}).status_code == 400
    assert client.post(f'/api/quiz/{code}/start', json={'mode': ['easy']}).status_code == 400
    res = client.post(f'/api/quiz/{code}/start', json={'mode': {'easy': True}})
    assert res.status_code == 400
    assert 'mode must be one of' in res.get_json()['error']

import json
import threading
import time

from conftest import frames, submit


def _updates(received):
    return [f for f in received if f['type'] == 'LEADERBOARD_UPDATE']


def _errors(received):
    return [f for f in received if f['type'] == 'ERROR']


def test_connect_receives_snapshot(sio_client):
    assert sio_client.is_connected('/ws')
    received = frames(sio_client)
    assert received[0] == {'type': 'LEADERBOARD_UPDATE', 'payload': {'players': []}}


def test_ping_gets_pong_only_for_sender(sio_client, connect_client):
    other = connect_client()
    frames(sio_client)
    frames(other)

    sio_client.send(json.dumps({'type': 'PING'}), namespace='/ws')
    assert frames(sio_client) == [{'type': 'PONG'}]
    assert frames(other) == []


def test_score_submit_broadcasts_to_every_session(sio_client, connect_client):
    other = connect_client()
    frames(sio_client)
    frames(other)

    submit(sio_client, 'Alice', 500)

    for c in (sio_client, other):
        updates = _updates(frames(c))
        assert len(updates) == 1
        players = updates[0]['payload']['players']
        assert [(p['nickname'], p['score'], p['framework']) for p in players] == [('Alice', 500, 'vue')]
        assert set(players[0]) == {'id', 'nickname', 'score', 'framework', 'timestamp'}


def test_stale_score_is_silent(sio_client, connect_client):
    other = connect_client()
    submit(sio_client, 'Alice', 500)
    frames(sio_client)
    frames(other)

    submit(sio_client, 'Alice', 400)
    assert frames(sio_client) == []
    assert frames(other) == []

    submit(sio_client, 'Alice', 600)
    players = _updates(frames(other))[0]['payload']['players']
    assert players[0]['score'] == 600


def test_new_best_changes_player_id(sio_client):
    submit(sio_client, 'Alice', 500)
    first = _updates(frames(sio_client))[-1]['payload']['players'][0]
    submit(sio_client, 'Alice', 700)
    second = _updates(frames(sio_client))[-1]['payload']['players'][0]
    assert first['id'] != second['id']


def test_late_joiner_gets_current_board(flask_app, sio_client, connect_client):
    submit(sio_client, 'Alice', 500)
    submit(sio_client, 'Bob', 800)
    late = connect_client()
    snapshot = _updates(frames(late))[0]['payload']['players']
    assert [p['nickname'] for p in snapshot] == ['Bob', 'Alice']


def test_validation_error_keeps_connection_open(flask_app, sio_client):
    frames(sio_client)
    submit(sio_client, 'A', 500)
    errors = _errors(frames(sio_client))
    assert errors == [{'type': 'ERROR', 'payload': {'message': 'Nickname must be between 2 and 20 characters'}}]

    submit(sio_client, 'Alice', 5000)
    assert _errors(frames(sio_client))[0]['payload']['message'].startswith('Invalid score')

    submit(sio_client, 'Alice', 500, framework='svelte')
    assert _errors(frames(sio_client))[0]['payload']['message'] == 'Invalid framework'

    assert sio_client.is_connected('/ws')
    assert len(flask_app.extensions['leaderboard_store']) == 0


def test_malformed_frame_replies_error(sio_client):
    frames(sio_client)
    sio_client.send('not json{', namespace='/ws')
    assert frames(sio_client) == [{'type': 'ERROR', 'payload': {'message': 'Invalid message format'}}]
    sio_client.send('[1, 2]', namespace='/ws')
    assert _errors(frames(sio_client))
    assert sio_client.is_connected('/ws')


def test_unknown_type_is_ignored(sio_client):
    frames(sio_client)
    sio_client.send(json.dumps({'type': 'HELLO'}), namespace='/ws')
    assert frames(sio_client) == []
    assert sio_client.is_connected('/ws')


def test_json_event_uses_same_dispatcher(sio_client):
    frames(sio_client)
    sio_client.send({'type': 'PING'}, json=True, namespace='/ws')
    assert {'type': 'PONG'} in frames(sio_client)


def test_rate_limit_eleventh_submission(sio_client, clock):
    frames(sio_client)
    for i in range(10):
        submit(sio_client, 'Alice', i + 1)
        clock.advance(0.5)
    assert _errors(frames(sio_client)) == []

    submit(sio_client, 'Alice', 100)
    errors = _errors(frames(sio_client))
    assert errors == [{'type': 'ERROR', 'payload': {'message': 'Rate limit exceeded. Please slow down.'}}]

    clock.advance(10.0)
    submit(sio_client, 'Alice', 200)
    received = frames(sio_client)
    assert _errors(received) == []
    assert _updates(received)[0]['payload']['players'][0]['score'] == 200


def test_rate_limit_is_per_session(sio_client, connect_client, clock):
    other = connect_client()
    for i in range(10):
        submit(sio_client, 'Alice', i + 1)
    frames(other)
    submit(other, 'Bob', 10)
    assert _errors(frames(other)) == []


def test_ping_does_not_consume_budget(sio_client, clock):
    for _ in range(15):
        sio_client.send(json.dumps({'type': 'PING'}), namespace='/ws')
    frames(sio_client)
    submit(sio_client, 'Alice', 10)
    assert _errors(frames(sio_client)) == []


def test_disconnect_unregisters_session(flask_app, connect_client):
    registry = flask_app.extensions['session_registry']
    a = connect_client()
    connect_client()
    assert len(registry) == 2
    a.disconnect(namespace='/ws')
    assert len(registry) == 1


class _RecordingSocketIO:
    def __init__(self):
        self.sent = []
        self._lock = threading.Lock()

    def send(self, data, to=None, namespace=None):
        with self._lock:
            self.sent.append((to, json.loads(data)))


def test_concurrent_broadcasts_deliver_latest_snapshot_last(flask_app, monkeypatch):
    import quickfinger.socketio_events as events

    handlers = flask_app.extensions['leaderboard_handlers']
    store = flask_app.extensions['leaderboard_store']
    flask_app.extensions['session_registry'].register('sid-1')
    recorder = _RecordingSocketIO()
    monkeypatch.setattr(events, 'socketio', recorder)

    snapshot_taken = threading.Event()
    resume = threading.Event()
    original_top_players = store.top_players

    def slow_top_players(limit=20):
        players = original_top_players(limit)
        if threading.current_thread().name == 'first':
            snapshot_taken.set()
            resume.wait(2)
        return players

    monkeypatch.setattr(store, 'top_players', slow_top_players)

    def first():
        store.submit('Alice', 500, 'vue')
        handlers.broadcast_leaderboard()

    def second():
        store.submit('Bob', 900, 'react')
        handlers.broadcast_leaderboard()

    t1 = threading.Thread(target=first, name='first')
    t1.start()
    assert snapshot_taken.wait(2)
    t2 = threading.Thread(target=second, name='second')
    t2.start()
    # Give the second broadcast time to reach the send loop if nothing holds it back
    time.sleep(0.2)
    resume.set()
    t1.join(2)
    t2.join(2)

    last_to, last_frame = recorder.sent[-1]
    assert last_to == 'sid-1'
    assert [p['nickname'] for p in last_frame['payload']['players']] == ['Bob', 'Alice']

def _events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def test_socket_connect_and_join(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    sio_client.emit('join_session', {'session_id': 42}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'connected' for pkt in received)
    joined = [pkt for pkt in received if pkt['name'] == 'joined']
    assert joined and joined[0]['args'][0] == {'room': 'session-42'}


def test_join_session_requires_id(sio_client):
    sio_client.get_received('/ws')  # flush
    sio_client.emit('join_session', {}, namespace='/ws')
    assert _events(sio_client, 'error')


def test_ping(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert _events(sio_client, 'pong') == [{'n': 1}]


def test_subscriber_receives_session_events(flask_app, sio_client, client, make_playlist):
    playlist_id, (s1,) = make_playlist(1)
    session = client.post('/api/sessions', json={'playlist_id': playlist_id, 'host_nickname': 'Alice'}).get_json()

    sio_client.emit('join_session', {'session_id': session['id']}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    bob = client.post('/api/sessions/join', json={'code': session['code'], 'nickname': 'Bob'}).get_json()['player']
    joined = _events(sio_client, 'playerJoined')
    assert joined == [{'session_id': session['id'], 'player_id': bob['id'], 'nickname': 'Bob'}]

    client.post(f"/api/sessions/{session['id']}/start")
    client.post(f"/api/sessions/{session['code']}/guess", json={
        'player_id': bob['id'], 'song_id': s1, 'correct': True,
    })
    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert names[0] == 'gameStarted'
    assert {'playerCompleted', 'gameCompleted', 'scoreUpdate'} <= set(names)

    update = next(pkt['args'][0] for pkt in received if pkt['name'] == 'scoreUpdate')
    assert update['player_id'] == bob['id']
    assert update['first_to_finish'] is True
    assert update['game_completed'] is True


def test_unsubscribed_socket_hears_nothing(flask_app, sio_client, client, make_playlist):
    playlist_id, _ = make_playlist(1)
    session = client.post('/api/sessions', json={'playlist_id': playlist_id, 'host_nickname': 'Alice'}).get_json()
    sio_client.emit('join_session', {'session_id': session['id']}, namespace='/ws')
    sio_client.emit('leave_session', {'session_id': session['id']}, namespace='/ws')
    sio_client.get_received('/ws')

    client.post('/api/sessions/join', json={'code': session['code'], 'nickname': 'Bob'})
    assert _events(sio_client, 'playerJoined') == []

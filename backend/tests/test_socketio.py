from podium import db
from podium.models import GameSession


def _names(packets):
    return [pkt['name'] for pkt in packets]


def test_socket_connect_and_ping(sio_client):
    assert sio_client.is_connected('/ws')
    received = sio_client.get_received('/ws')
    assert 'connected' in _names(received)

    sio_client.emit('ping', {'t': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert received[-1]['name'] == 'pong'
    assert received[-1]['args'][0] == {'t': 1}


def test_join_requires_owned_session(sio_client, make_user):
    sio_client.get_received('/ws')  # flush
    sio_client.emit('join_session', {}, namespace='/ws')
    assert _names(sio_client.get_received('/ws')) == ['error']

    stranger = make_user('stranger')
    foreign = GameSession(user_id=stranger.id, game_type='conductor')
    db.session.add(foreign)
    db.session.commit()
    sio_client.emit('join_session', {'session_id': foreign.id}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert _names(received) == ['error']
    assert received[0]['args'][0]['message'] == 'Game session not found'


def test_end_session_notifies_session_room(auth_client, sio_client):
    session_id = auth_client.post('/api/games/start-session', json={'game_type': 'rapidFire'}).get_json()['session_id']
    sio_client.get_received('/ws')  # flush

    sio_client.emit('join_session', {'session_id': session_id}, namespace='/ws')
    assert _names(sio_client.get_received('/ws')) == ['joined']

    res = auth_client.post(f'/api/games/end-session/{session_id}', json={
        'game_specific_data': {'rapidFire': {'total_prompts': 4, 'completed_responses': 4, 'response_time': 5}},
    })
    assert res.status_code == 200

    received = sio_client.get_received('/ws')
    by_name = {pkt['name']: pkt['args'][0] for pkt in received}
    assert by_name['session_completed']['session_id'] == session_id
    assert by_name['session_completed']['session']['performance']['score'] == 100
    unlocked = {a['type'] for a in by_name['achievements_unlocked']['achievements']}
    assert unlocked == {'first_game', 'perfect_score'}


def test_leave_session(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('leave_session', {'session_id': 42}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert received[-1]['name'] == 'left'
    assert received[-1]['args'][0] == {'room': 'session:42'}

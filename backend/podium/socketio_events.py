from flask_login import current_user
from flask_socketio import join_room, leave_room, emit
from podium import socketio
from podium.models import GameSession


def _room(session_id) -> str:
    return f"session:{session_id}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_session(data):
    session_id = (data or {}).get('session_id')
    if session_id is None:
        emit('error', {'message': 'session_id is required'})
        return
    try:
        session_id = int(session_id)
    except (TypeError, ValueError):
        emit('error', {'message': 'session_id must be an integer'})
        return
    # Only the owner may listen to a session room
    if not current_user.is_authenticated:
        emit('error', {'message': 'Authentication required'})
        return
    owned = GameSession.query.filter_by(id=session_id, user_id=current_user.id).first()
    if owned is None:
        emit('error', {'message': 'Game session not found'})
        return
    room = _room(session_id)
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_session(data):
    session_id = (data or {}).get('session_id')
    if session_id is None:
        emit('error', {'message': 'session_id is required'})
        return
    room = _room(session_id)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def notify_session_completed(session_id: int, payload: dict) -> None:
    """Push EndSession results to anyone listening on the session's room."""
    room = _room(session_id)
    socketio.emit('session_completed', {
        'session_id': session_id,
        'session': payload.get('session'),
        'ai_analysis': payload.get('ai_analysis'),
    }, to=room, namespace='/ws')
    if payload.get('new_achievements'):
        socketio.emit('achievements_unlocked', {
            'session_id': session_id,
            'achievements': payload['new_achievements'],
        }, to=room, namespace='/ws')


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    # Primary namespace
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_session', handle_join_session, namespace='/ws')
    socketio.on_event('leave_session', handle_leave_session, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_session', handle_join_session, namespace='/')
        socketio.on_event('leave_session', handle_leave_session, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')

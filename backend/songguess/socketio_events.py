from flask_socketio import join_room, leave_room, emit
from songguess import socketio
from songguess.services.sessions.notifications import channel_for, NAMESPACE


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def _channel_from(data):
    session_id = (data or {}).get('session_id')
    try:
        return channel_for(int(session_id))
    except (TypeError, ValueError):
        emit('error', {'message': 'session_id is required'})
        return None


def handle_join_session(data):
    """Subscribe this socket to a session's event channel."""
    room = _channel_from(data)
    if room is None:
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_session(data):
    room = _channel_from(data)
    if room is None:
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('join_session', handle_join_session, namespace=ns)
        socketio.on_event('leave_session', handle_leave_session, namespace=ns)
        socketio.on_event('ping', handle_ping, namespace=ns)

from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from songguess import db
from songguess.services.sessions import coordinator
from songguess.services.sessions.errors import SessionError, ValidationError
from songguess.services.sessions.leaderboard import session_leaderboard


sessions = Blueprint('sessions', __name__)


@sessions.errorhandler(SessionError)
def handle_session_error(exc: SessionError):
    db.session.rollback()
    current_app.logger.info(f"[session-error] {type(exc).__name__}: {exc.message}")
    return jsonify(exc.to_dict()), exc.status_code


def _current_user_id():
    return current_user.id if current_user.is_authenticated else None


def _require(data, *fields):
    missing = [f for f in fields if data.get(f) in (None, '')]
    if missing:
        raise ValidationError(f"Missing {', '.join(missing)}")


@sessions.route('', methods=['POST'])
def create_session():
    data = request.get_json(silent=True) or {}
    _require(data, 'playlist_id', 'host_nickname')
    session = coordinator.create_session(data['playlist_id'], data['host_nickname'], user_id=_current_user_id())
    return jsonify(session.to_dict(include_songs=True)), 201


@sessions.route('/join', methods=['POST'])
def join_session():
    data = request.get_json(silent=True) or {}
    _require(data, 'code', 'nickname')
    session, player = coordinator.join_session(data['code'], data['nickname'], user_id=_current_user_id())
    payload = session.to_dict(include_songs=True)
    payload['player'] = player.to_dict()
    return jsonify(payload), 201


@sessions.route('/leave', methods=['POST'])
def leave_session():
    data = request.get_json(silent=True) or {}
    _require(data, 'session_id', 'player_id')
    return jsonify(coordinator.leave_session(data['session_id'], data['player_id']))


@sessions.route('/<int:session_id>/start', methods=['POST'])
def start_session(session_id):
    session = coordinator.start_session(session_id)
    return jsonify(session.to_dict(include_songs=True))


@sessions.route('/<string:code>', methods=['GET'])
def get_session(code):
    session = coordinator.get_session_by_code(code)
    return jsonify(session.to_dict(include_songs=True))


@sessions.route('/<string:code>/guess', methods=['POST'])
def submit_guess(code):
    data = request.get_json(silent=True) or {}
    _require(data, 'player_id', 'song_id', 'correct')
    result = coordinator.record_guess(code, data['player_id'], data['song_id'], data['correct'])
    return jsonify(result.to_dict())


@sessions.route('/<string:code>/complete', methods=['POST'])
def complete(code):
    data = request.get_json(silent=True) or {}
    _require(data, 'player_id')
    result = coordinator.complete_player(code, data['player_id'])
    return jsonify(result.to_dict())


@sessions.route('/<string:code>/leaderboard', methods=['GET'])
def leaderboard(code):
    session = coordinator.get_session_by_code(code)
    return jsonify(session_leaderboard(session))

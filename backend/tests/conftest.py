import os
import sys
import pytest

# Ensure the backend root (containing the `songguess` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from songguess import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    MAX_PLAYERS = 8
    MIN_NICKNAME_LENGTH = 2
    MAX_NICKNAME_LENGTH = 20
    CODE_GENERATION_RETRIES = 3
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import songguess.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def make_playlist(flask_app):
    """Factory: ``make_playlist(n)`` -> (playlist_id, [song ids])."""
    from songguess.models import Playlist, PlaylistSong, Song

    counter = {'n': 0}

    def _make(song_total=3, name=None):
        counter['n'] += 1
        prefix = f"p{counter['n']}"
        playlist = Playlist(name=name or f'Playlist {counter["n"]}')
        song_ids = []
        for position in range(song_total):
            song = Song(id=f'{prefix}-song-{position}', title=f'Song {position}', artist='Artist')
            db.session.add(song)
            playlist.entries.append(PlaylistSong(song=song, position=position))
            song_ids.append(song.id)
        db.session.add(playlist)
        db.session.commit()
        return playlist.id, song_ids

    return _make


@pytest.fixture()
def emitted(monkeypatch):
    """Capture every Socket.IO emit as (event, payload, room)."""
    events = []

    def fake_emit(event, payload=None, to=None, namespace=None, **kwargs):
        events.append((event, payload, to))

    monkeypatch.setattr(socketio, 'emit', fake_emit)
    return events

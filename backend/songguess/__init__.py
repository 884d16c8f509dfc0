from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from songguess.main import main
    flask_app.register_blueprint(main)

    from songguess.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    from songguess.api.playlists import playlists, leaderboard
    flask_app.register_blueprint(playlists, url_prefix='/api/playlists')
    flask_app.register_blueprint(leaderboard, url_prefix='/api/leaderboard')

    from songguess.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from songguess.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from songguess.models import Playlist, PlaylistSong, Song
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for u in ['testuser1', 'testuser2', 'testuser3']:
                user = User(username=u)
                user.set_password('password')
                db.session.add(user)

            playlist = Playlist(name='Demo Mix')
            demo_songs = [
                ('demo-1', 'Blue Monday', 'New Order'),
                ('demo-2', 'Heroes', 'David Bowie'),
                ('demo-3', 'Dancing Queen', 'ABBA'),
            ]
            for position, (song_id, title, artist) in enumerate(demo_songs):
                song = Song(id=song_id, title=title, artist=artist)
                db.session.add(song)
                playlist.entries.append(PlaylistSong(song=song, position=position))
            db.session.add(playlist)

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app

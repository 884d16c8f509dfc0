from datetime import datetime, timezone
from enum import Enum

from songguess import db, bcrypt
from flask_login import UserMixin

from songguess.services.sessions.ledger import AttemptLedger


def _utcnow():
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    WAITING = 'WAITING'
    ACTIVE = 'ACTIVE'
    COMPLETED = 'COMPLETED'


class FinishStatus(str, Enum):
    """Whether a player finished first.

    ``PENDING`` means the player has not finished yet; ``NOT_APPLICABLE``
    marks single-player sessions, where there is no race to win or lose.
    """
    PENDING = 'pending'
    NOT_APPLICABLE = 'not_applicable'
    FIRST = 'first'
    NOT_FIRST = 'not_first'

    def as_flag(self):
        if self is FinishStatus.FIRST:
            return True
        if self is FinishStatus.NOT_FIRST:
            return False
        return None


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    level = db.Column(db.Integer, default=1, nullable=False)
    level_experience = db.Column(db.Integer, default=0, nullable=False)
    total_experience = db.Column(db.Integer, default=0, nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'level': self.level,
            'level_experience': self.level_experience,
            'total_experience': self.total_experience,
        }


class Song(db.Model):
    __tablename__ = 'song'
    id = db.Column(db.String(64), primary_key=True)
    title = db.Column(db.String(256), nullable=False)
    artist = db.Column(db.String(256), nullable=True)
    preview_url = db.Column(db.String(512), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'artist': self.artist,
            'preview_url': self.preview_url,
        }


class PlaylistSong(db.Model):
    __tablename__ = 'playlist_song'
    playlist_id = db.Column(db.Integer, db.ForeignKey('playlist.id'), primary_key=True)
    song_id = db.Column(db.String(64), db.ForeignKey('song.id'), primary_key=True)
    position = db.Column(db.Integer, default=0, nullable=False)
    song = db.relationship('Song')


class Playlist(db.Model):
    __tablename__ = 'playlist'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    entries = db.relationship(
        'PlaylistSong', order_by='PlaylistSong.position', cascade='all, delete-orphan'
    )

    @property
    def songs(self):
        return [e.song for e in self.entries]

    def to_dict(self, include_songs=True):
        data = {
            'id': self.id,
            'name': self.name,
            'created_by': self.created_by,
            'song_count': len(self.entries),
        }
        if include_songs:
            data['songs'] = [s.to_dict() for s in self.songs]
        return data


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False, index=True)
    nickname = db.Column(db.String(64), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    score = db.Column(db.Integer, default=0, nullable=False)
    correct = db.Column(db.Integer, default=0, nullable=False)
    total_guesses = db.Column(db.Integer, default=0, nullable=False)
    attempts = db.Column(db.Text, nullable=True)  # JSON-encoded AttemptLedger
    completion_time = db.Column(db.Integer, nullable=True)  # seconds
    finish_status = db.Column(db.String(16), default=FinishStatus.PENDING.value, nullable=False)
    bonus_points = db.Column(db.Integer, nullable=True)  # NULL until completion bonuses are applied
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    session = db.relationship('GameSession', back_populates='players')
    user = db.relationship('User')

    @property
    def ledger(self) -> AttemptLedger:
        return AttemptLedger.from_json(self.attempts)

    @ledger.setter
    def ledger(self, value: AttemptLedger) -> None:
        self.attempts = value.to_json()

    @property
    def finish(self) -> FinishStatus:
        return FinishStatus(self.finish_status or FinishStatus.PENDING.value)

    def to_dict(self):
        return {
            'id': self.id,
            'session_id': self.session_id,
            'nickname': self.nickname,
            'user_id': self.user_id,
            'score': self.score,
            'songs_completed': self.correct,
            'total_guesses': self.total_guesses,
            'attempts': self.ledger.to_dict(),
            'completion_time': self.completion_time,
            'first_to_finish': self.finish.as_flag(),
            'finish_status': self.finish.value,
        }


class GameSession(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.Integer, primary_key=True)
    # Unique only among WAITING/ACTIVE sessions; enforced by the code generator.
    code = db.Column(db.String(6), nullable=False, index=True)
    status = db.Column(db.String(16), default=SessionStatus.WAITING.value, nullable=False)
    playlist_id = db.Column(db.Integer, db.ForeignKey('playlist.id'), nullable=False)
    host_player_id = db.Column(db.Integer, nullable=True)
    first_finisher_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    ended_at = db.Column(db.DateTime(timezone=True), nullable=True)
    playlist = db.relationship('Playlist')
    players = db.relationship(
        'Player', back_populates='session', order_by='Player.id', cascade='all, delete-orphan'
    )

    def to_dict(self, include_songs=False):
        data = {
            'id': self.id,
            'code': self.code,
            'status': self.status,
            'playlist_id': self.playlist_id,
            'host_player_id': self.host_player_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'ended_at': self.ended_at.isoformat() if self.ended_at else None,
            'players': [p.to_dict() for p in self.players],
        }
        if include_songs and self.playlist:
            data['playlist'] = self.playlist.to_dict()
        return data

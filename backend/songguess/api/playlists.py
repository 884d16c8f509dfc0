import uuid

from flask import Blueprint, jsonify, request
from flask_login import current_user
from songguess import db
from songguess.models import Playlist, PlaylistSong, Song
from songguess.services.sessions.leaderboard import global_leaderboard


playlists = Blueprint('playlists', __name__)
leaderboard = Blueprint('leaderboard', __name__)


@playlists.route('', methods=['GET'])
def list_playlists():
    return jsonify([p.to_dict() for p in Playlist.query.order_by(Playlist.id).all()])


@playlists.route('/<int:playlist_id>', methods=['GET'])
def get_playlist(playlist_id):
    playlist = db.get_or_404(Playlist, playlist_id)
    return jsonify(playlist.to_dict())


@playlists.route('', methods=['POST'])
def create_playlist():
    """Create a playlist from already-validated song records.

    Songs that already exist (by id) are reused as-is.
    """
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    songs = data.get('songs') or []
    if not name:
        return jsonify({'error': 'Missing playlist name'}), 400
    if not isinstance(songs, list) or any(not isinstance(s, dict) or not s.get('title') for s in songs):
        return jsonify({'error': 'Each song needs a title'}), 400

    playlist = Playlist(name=name, created_by=current_user.id if current_user.is_authenticated else None)
    seen = set()
    for position, item in enumerate(songs):
        song = db.session.get(Song, str(item['id'])) if item.get('id') else None
        if song is None:
            song = Song(
                id=str(item.get('id') or uuid.uuid4().hex),
                title=item['title'],
                artist=item.get('artist'),
                preview_url=item.get('preview_url'),
            )
            db.session.add(song)
        if song.id in seen:
            continue
        seen.add(song.id)
        playlist.entries.append(PlaylistSong(song=song, position=position))
    db.session.add(playlist)
    db.session.commit()
    return jsonify(playlist.to_dict()), 201


@leaderboard.route('', methods=['GET'])
def top_players():
    return jsonify(global_leaderboard())

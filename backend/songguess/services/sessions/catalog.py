"""Read-only view of playlists, as seen by the session engine."""

from typing import Set

from songguess import db
from songguess.models import Playlist, PlaylistSong
from .errors import PlaylistNotFound


def get_playlist(playlist_id) -> Playlist:
    if playlist_id is None or isinstance(playlist_id, bool):
        raise PlaylistNotFound()
    try:
        key = int(playlist_id)
    except (TypeError, ValueError):
        raise PlaylistNotFound()
    playlist = db.session.get(Playlist, key)
    if not playlist:
        raise PlaylistNotFound()
    return playlist


def song_count(playlist_id) -> int:
    return PlaylistSong.query.filter_by(playlist_id=playlist_id).count()


def song_ids(playlist_id) -> Set[str]:
    rows = db.session.query(PlaylistSong.song_id).filter_by(playlist_id=playlist_id).all()
    return {row[0] for row in rows}

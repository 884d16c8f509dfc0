from songguess import db
from songguess.models import GameSession, Player, Playlist

GLOBAL_LEADERBOARD_LIMIT = 10


def session_leaderboard(session: GameSession):
    """Players of one session, best final score first."""
    rows = []
    for player in Player.query.filter_by(session_id=session.id).all():
        ledger = player.ledger
        rows.append({
            'player_id': player.id,
            'nickname': player.nickname,
            'final_score': player.score,
            'songs_completed': player.correct,
            'accuracy': player.correct / player.total_guesses if player.total_guesses else 0,
            'average_attempts': ledger.total_attempts() / player.correct if player.correct else 0,
            'completion_time': player.completion_time or 0,
            'first_to_finish': player.finish.as_flag(),
        })
    rows.sort(key=lambda r: r['final_score'], reverse=True)
    return rows


def global_leaderboard(limit: int = GLOBAL_LEADERBOARD_LIMIT):
    query = (
        db.session.query(Player, GameSession, Playlist)
        .join(GameSession, Player.session_id == GameSession.id)
        .outerjoin(Playlist, GameSession.playlist_id == Playlist.id)
        .order_by(Player.score.desc(), Player.total_guesses.asc())
        .limit(limit)
    )
    results = []
    for player, session, playlist in query.all():
        accuracy = (player.correct / player.total_guesses * 100) if player.total_guesses else 0.0
        results.append({
            'nickname': player.nickname,
            'score': player.score,
            'total_guesses': player.total_guesses,
            'accuracy': f"{accuracy:.1f}",
            'last_played': (session.started_at or session.created_at).isoformat(),
            'playlist': playlist.name if playlist else 'Unknown Playlist',
        })
    return results

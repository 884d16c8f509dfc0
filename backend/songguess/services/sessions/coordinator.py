"""Game session lifecycle: create, join, leave, start, guess, complete.

Sessions move WAITING -> ACTIVE -> COMPLETED and are deleted outright when
their last player leaves. Every operation runs in its own database
transaction and is safe to call from concurrent requests:

- player rows are read ``FOR UPDATE`` before their ledger is touched, so
  guesses from the same player serialize; a player row is always locked
  before its session row;
- first-to-finish is claimed with a conditional UPDATE on the session row
  (``first_finisher_id IS NULL``), so at most one player per session can
  ever hold it;
- the session is finalized with a conditional UPDATE (``status = ACTIVE``),
  so ``ended_at`` is stamped and ``gameCompleted`` is broadcast once.

Events are published only after the transaction commits.
"""

import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from flask import current_app
from sqlalchemy import update

from songguess import db
from songguess.models import GameSession, Player, SessionStatus, FinishStatus, _utcnow
from . import catalog, scoring
from .codes import generate_unique_code
from .errors import (
    ValidationError,
    NicknameInvalid,
    SessionNotFound,
    PlayerNotFound,
    SongNotFound,
    SessionNotJoinable,
    NicknameTaken,
    SessionFull,
    SessionNotActive,
    InvalidTransition,
    SongAlreadySolved,
    PlayerNotYetDone,
)
from .notifications import (
    notifier,
    PlayerJoined,
    PlayerLeft,
    HostChanged,
    GameStarted,
    ScoreUpdate,
    PlayerCompleted,
    GameCompleted,
)
from .progression import add_experience

NICKNAME_PATTERN = re.compile(r'[a-zA-Z0-9 \-_]+')


@dataclass
class CompletionOutcome:
    player_completed: bool
    game_completed: bool
    finish_status: FinishStatus = FinishStatus.PENDING
    completion_time: Optional[int] = None
    bonuses: Optional[scoring.CompletionBonuses] = None
    newly_completed: bool = False
    session_finalized: bool = False


@dataclass
class GuessResult:
    player_id: int
    song_id: str
    is_correct: bool
    points_earned: int
    score: int
    attempts: int
    elapsed_seconds: float
    songs_completed: int
    total_songs: int
    player_completed: bool
    game_completed: bool
    first_to_finish: Optional[bool]
    breakdown: Dict[str, Any] = field(default_factory=dict)
    completion_bonuses: Optional[Dict[str, int]] = None
    xp_earned: int = 0

    def to_dict(self):
        return dict(self.__dict__)


@dataclass
class CompletionResult:
    player_id: int
    songs_completed: int
    total_songs: int
    completion_time: Optional[int]
    first_to_finish: Optional[bool]
    finish_status: str
    completion_bonuses: Dict[str, int]
    final_score: int
    game_completed: bool
    all_players_completed: bool

    def to_dict(self):
        return dict(self.__dict__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _as_id(value, error_cls):
    # JSON true/false would otherwise pass as 1/0
    if isinstance(value, bool):
        raise error_cls()
    try:
        return int(value)
    except (TypeError, ValueError):
        raise error_cls()


def validate_nickname(nickname) -> str:
    cfg = current_app.config
    min_len = int(cfg.get('MIN_NICKNAME_LENGTH', 2))
    max_len = int(cfg.get('MAX_NICKNAME_LENGTH', 20))
    if not nickname or not isinstance(nickname, str):
        raise NicknameInvalid('Missing nickname')
    if len(nickname) < min_len:
        raise NicknameInvalid(f'Nickname must be at least {min_len} characters')
    if len(nickname) > max_len:
        raise NicknameInvalid(f'Nickname must be at most {max_len} characters')
    if not NICKNAME_PATTERN.fullmatch(nickname):
        raise NicknameInvalid('Nickname can only contain letters, numbers, spaces, hyphens, and underscores')
    return nickname


def get_session_by_code(code, lock: bool = False) -> GameSession:
    """Newest session holding ``code``; older holders are all COMPLETED."""
    if not code or not isinstance(code, str):
        raise SessionNotFound()
    query = GameSession.query.filter_by(code=code.upper()).order_by(GameSession.id.desc())
    if lock:
        query = query.with_for_update().populate_existing()
    session = query.first()
    if not session:
        raise SessionNotFound()
    return session


def get_session(session_id, lock: bool = False) -> GameSession:
    query = GameSession.query.filter_by(id=_as_id(session_id, SessionNotFound))
    if lock:
        query = query.with_for_update().populate_existing()
    session = query.first()
    if not session:
        raise SessionNotFound()
    return session


def _lock_player(session: GameSession, player_id) -> Player:
    player = (
        Player.query.filter_by(id=_as_id(player_id, PlayerNotFound), session_id=session.id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not player:
        raise PlayerNotFound()
    return player


def _is_code_active(code: str) -> bool:
    return (
        GameSession.query.filter(
            GameSession.code == code,
            GameSession.status.in_([SessionStatus.WAITING.value, SessionStatus.ACTIVE.value]),
        ).first()
        is not None
    )


def create_session(playlist_id, host_nickname, user_id=None) -> GameSession:
    if playlist_id is None:
        raise ValidationError('Missing playlist_id')
    validate_nickname(host_nickname)
    playlist = catalog.get_playlist(playlist_id)
    if catalog.song_count(playlist.id) == 0:
        raise ValidationError('Playlist has no songs')

    retries = int(current_app.config.get('CODE_GENERATION_RETRIES', 3))
    code = generate_unique_code(_is_code_active, GameSession.query.count(), retries=retries)

    session = GameSession(code=code, status=SessionStatus.WAITING.value, playlist_id=playlist.id)
    host = Player(nickname=host_nickname, user_id=user_id, score=0, correct=0, total_guesses=0)
    session.players.append(host)
    db.session.add(session)
    db.session.flush()
    session.host_player_id = host.id
    db.session.commit()
    current_app.logger.info(f"[session-create] session={session.id} code={code} playlist={playlist.id} host={host.id}")
    return session


def join_session(code, nickname, user_id=None):
    """Add a player to a WAITING session; returns ``(session, player)``."""
    validate_nickname(nickname)
    session = get_session_by_code(code, lock=True)
    if session.status != SessionStatus.WAITING.value:
        raise SessionNotJoinable()

    max_players = int(current_app.config.get('MAX_PLAYERS', 8))
    if len(session.players) >= max_players:
        raise SessionFull(f'Game session is full (max {max_players} players)')
    if any(p.nickname.lower() == nickname.lower() for p in session.players):
        raise NicknameTaken()

    player = Player(nickname=nickname, user_id=user_id, score=0, correct=0, total_guesses=0)
    session.players.append(player)
    db.session.commit()
    current_app.logger.info(f"[join] session={session.id} player={player.id} nickname={nickname!r}")

    notifier.publish(PlayerJoined(session_id=session.id, player_id=player.id, nickname=player.nickname))
    return session, player


def leave_session(session_id, player_id) -> Dict[str, bool]:
    # Player row before session row, the same order record_guess takes them.
    player = _lock_player(get_session(session_id), player_id)
    session = get_session(session_id, lock=True)

    sid = session.id
    nickname = player.nickname
    was_host = session.host_player_id == player.id
    session.players.remove(player)
    db.session.flush()

    if not session.players:
        db.session.delete(session)
        db.session.commit()
        current_app.logger.info(f"[leave] session={sid} player={player_id} last player left, session deleted")
        return {'deleted': True}

    new_host = None
    if was_host:
        new_host = session.players[0]
        session.host_player_id = new_host.id
    db.session.commit()
    current_app.logger.info(f"[leave] session={sid} player={player_id} remaining={len(session.players)}")

    if new_host is not None:
        current_app.logger.info(f"[host-change] session={sid} host={new_host.id}")
        notifier.publish(HostChanged(session_id=sid, player_id=new_host.id, nickname=new_host.nickname))
    notifier.publish(PlayerLeft(session_id=sid, player_id=int(player_id), nickname=nickname))
    return {'deleted': False}


def start_session(session_id) -> GameSession:
    session = get_session(session_id)
    started_at = _utcnow()
    result = db.session.execute(
        update(GameSession)
        .where(GameSession.id == session.id, GameSession.status == SessionStatus.WAITING.value)
        .values(status=SessionStatus.ACTIVE.value, started_at=started_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise InvalidTransition(f'Game session is {session.status}, only WAITING sessions can start')
    db.session.commit()
    db.session.refresh(session)
    current_app.logger.info(f"[start] session={session.id} code={session.code}")

    notifier.publish(GameStarted(session_id=session.id, started_at=started_at.isoformat()))
    return session


def _claim_first_to_finish(session: GameSession, player: Player) -> FinishStatus:
    if Player.query.filter_by(session_id=session.id).count() <= 1:
        return FinishStatus.NOT_APPLICABLE
    result = db.session.execute(
        update(GameSession)
        .where(GameSession.id == session.id, GameSession.first_finisher_id.is_(None))
        .values(first_finisher_id=player.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        current_app.logger.info(f"[first-to-finish] session={session.id} player={player.id}")
        return FinishStatus.FIRST
    return FinishStatus.NOT_FIRST


def _finalize_session(session: GameSession) -> bool:
    """Mark the session COMPLETED; True only for the caller that did it."""
    result = db.session.execute(
        update(GameSession)
        .where(GameSession.id == session.id, GameSession.status == SessionStatus.ACTIVE.value)
        .values(status=SessionStatus.COMPLETED.value, ended_at=_utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def evaluate_completion(session: GameSession, player: Player, total_songs: int) -> CompletionOutcome:
    """Settle ``player``'s completion and the session's, if either is due.

    Safe to call repeatedly: completion time, first-to-finish and bonuses
    are only written the first time, and the session is only finalized by
    the first caller to see it ACTIVE.
    """
    outcome = CompletionOutcome(player_completed=player.correct >= total_songs, game_completed=False)

    if outcome.player_completed:
        if player.completion_time is None:
            player.completion_time = player.ledger.completion_time_seconds() or 0
        if player.finish is FinishStatus.PENDING:
            player.finish_status = _claim_first_to_finish(session, player).value
        bonuses = scoring.completion_bonuses(
            player.correct, total_songs, player.completion_time, player.finish.as_flag()
        )
        if player.bonus_points is None:
            player.bonus_points = bonuses.total
            player.score += bonuses.total
            outcome.newly_completed = True
        outcome.bonuses = bonuses
        outcome.completion_time = player.completion_time
        outcome.finish_status = player.finish
        db.session.add(player)
        db.session.flush()

    outcome.game_completed = (
        db.session.query(Player.id)
        .filter(Player.session_id == session.id, Player.correct >= total_songs)
        .first()
        is not None
    )
    if outcome.game_completed:
        outcome.session_finalized = _finalize_session(session)
    return outcome


def _publish_completion(session: GameSession, player: Player, outcome: CompletionOutcome) -> None:
    if outcome.newly_completed:
        notifier.publish(PlayerCompleted(
            session_id=session.id,
            player_id=player.id,
            songs_completed=player.correct,
            completion_time=player.completion_time,
            first_to_finish=player.finish.as_flag(),
            completion_bonuses=outcome.bonuses.to_dict(),
            final_score=player.score,
        ))
    if outcome.session_finalized:
        db.session.refresh(session)
        current_app.logger.info(f"[session-complete] session={session.id} code={session.code}")
        notifier.publish(GameCompleted(
            session_id=session.id,
            ended_at=session.ended_at.isoformat() if session.ended_at else None,
            players=[
                {
                    'id': p.id,
                    'nickname': p.nickname,
                    'score': p.score,
                    'songs_completed': p.correct,
                    'completion_time': p.completion_time,
                    'first_to_finish': p.finish.as_flag(),
                }
                for p in Player.query.filter_by(session_id=session.id).order_by(Player.id).all()
            ],
        ))


def record_guess(session_code, player_id, song_id, is_correct, now_ms: Optional[int] = None) -> GuessResult:
    now_ms = _now_ms() if now_ms is None else int(now_ms)
    if song_id is None or is_correct is None:
        raise ValidationError('Missing required fields')
    if not isinstance(is_correct, bool):
        raise ValidationError('correct must be a boolean')
    song_id = str(song_id)

    session = get_session_by_code(session_code)
    player = _lock_player(session, player_id)
    if session.status == SessionStatus.WAITING.value:
        raise SessionNotActive()
    if song_id not in catalog.song_ids(session.playlist_id):
        raise SongNotFound()
    total_songs = catalog.song_count(session.playlist_id)

    ledger = player.ledger
    previous = ledger.get(song_id)
    if previous is not None and previous.is_correct:
        raise SongAlreadySolved()

    entry = ledger.record_guess(song_id, is_correct, now_ms)
    elapsed = entry.elapsed_seconds(now_ms)
    breakdown = scoring.scoring_breakdown(entry.attempts, elapsed, is_correct)

    player.total_guesses += 1
    xp_earned = 0
    if is_correct:
        player.score += breakdown.total_points
        player.correct += 1
        if player.user is not None:
            xp_earned = scoring.song_xp(entry.attempts, elapsed, True, player.user.level or 1)
            if xp_earned:
                add_experience(player.user, xp_earned)
    player.ledger = ledger
    db.session.add(player)
    db.session.flush()

    outcome = evaluate_completion(session, player, total_songs)
    db.session.commit()
    current_app.logger.info(
        f"[guess] session={session.id} player={player.id} song={song_id} correct={is_correct} "
        f"attempts={entry.attempts} points={breakdown.total_points} score={player.score}"
    )

    first_to_finish = player.finish.as_flag()
    _publish_completion(session, player, outcome)
    notifier.publish(ScoreUpdate(
        session_id=session.id,
        player_id=player.id,
        song_id=song_id,
        is_correct=is_correct,
        points_earned=breakdown.total_points,
        score=player.score,
        attempts=entry.attempts,
        breakdown=breakdown.to_dict(),
        songs_completed=player.correct,
        player_completed=outcome.player_completed,
        game_completed=outcome.game_completed,
        first_to_finish=first_to_finish,
    ))

    return GuessResult(
        player_id=player.id,
        song_id=song_id,
        is_correct=is_correct,
        points_earned=breakdown.total_points,
        score=player.score,
        attempts=entry.attempts,
        elapsed_seconds=elapsed,
        songs_completed=player.correct,
        total_songs=total_songs,
        player_completed=outcome.player_completed,
        game_completed=outcome.game_completed,
        first_to_finish=first_to_finish,
        breakdown=breakdown.to_dict(),
        completion_bonuses=outcome.bonuses.to_dict() if outcome.bonuses else None,
        xp_earned=xp_earned,
    )


def complete_player(session_code, player_id) -> CompletionResult:
    """Finalize a player who has solved every song.

    Calling it again once the player is finalized re-reads the stored
    result: no bonus is added twice and no completion event is re-sent.
    """
    session = get_session_by_code(session_code)
    player = _lock_player(session, player_id)
    total_songs = catalog.song_count(session.playlist_id)
    if player.correct < total_songs:
        raise PlayerNotYetDone()

    outcome = evaluate_completion(session, player, total_songs)
    db.session.commit()
    _publish_completion(session, player, outcome)

    players = Player.query.filter_by(session_id=session.id).all()
    return CompletionResult(
        player_id=player.id,
        songs_completed=player.correct,
        total_songs=total_songs,
        completion_time=player.completion_time,
        first_to_finish=player.finish.as_flag(),
        finish_status=player.finish.value,
        completion_bonuses=outcome.bonuses.to_dict(),
        final_score=player.score,
        game_completed=outcome.game_completed,
        all_players_completed=all(p.correct >= total_songs for p in players),
    )

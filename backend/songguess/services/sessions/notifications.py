"""Session events and their delivery over Socket.IO.

Every event kind is its own dataclass with a fixed payload shape. Payloads
are self-contained snapshots: subscribers may receive them more than once
and in any order, so none of them is a delta against earlier state.

Delivery is fire-and-forget. By the time an event is published the
triggering change is already committed, and a failed emit is only logged.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, ClassVar, Dict, List, Optional

from flask import current_app

from songguess import socketio

NAMESPACE = '/ws'


def channel_for(session_id: int) -> str:
    return f"session-{session_id}"


@dataclass
class SessionEvent:
    event_type: ClassVar[str] = ''
    session_id: int

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PlayerJoined(SessionEvent):
    event_type: ClassVar[str] = 'playerJoined'
    player_id: int
    nickname: str


@dataclass
class PlayerLeft(SessionEvent):
    event_type: ClassVar[str] = 'playerLeft'
    player_id: int
    nickname: str


@dataclass
class HostChanged(SessionEvent):
    event_type: ClassVar[str] = 'hostChanged'
    player_id: int
    nickname: str


@dataclass
class GameStarted(SessionEvent):
    event_type: ClassVar[str] = 'gameStarted'
    started_at: str


@dataclass
class ScoreUpdate(SessionEvent):
    event_type: ClassVar[str] = 'scoreUpdate'
    player_id: int
    song_id: str
    is_correct: bool
    points_earned: int
    score: int
    attempts: int
    breakdown: Dict[str, Any]
    songs_completed: int
    player_completed: bool
    game_completed: bool
    first_to_finish: Optional[bool]


@dataclass
class PlayerCompleted(SessionEvent):
    event_type: ClassVar[str] = 'playerCompleted'
    player_id: int
    songs_completed: int
    completion_time: Optional[int]
    first_to_finish: Optional[bool]
    completion_bonuses: Dict[str, int]
    final_score: int


@dataclass
class GameCompleted(SessionEvent):
    event_type: ClassVar[str] = 'gameCompleted'
    ended_at: str
    players: List[Dict[str, Any]] = field(default_factory=list)


class NotificationGateway:
    """Publishes session events to the room subscribed to a session."""

    def __init__(self, sio=None, namespace: str = NAMESPACE):
        self._sio = sio
        self.namespace = namespace

    @property
    def sio(self):
        return self._sio or socketio

    def broadcast(self, channel_id: str, event_type: str, payload: Dict[str, Any]) -> bool:
        try:
            self.sio.emit(event_type, payload, to=channel_id, namespace=self.namespace)
        except Exception as exc:
            current_app.logger.warning(f"[notify-failed] channel={channel_id} event={event_type} error={exc}")
            return False
        return True

    def publish(self, event: SessionEvent) -> bool:
        return self.broadcast(channel_for(event.session_id), event.event_type, event.to_payload())


notifier = NotificationGateway()

"""Per-player record of guesses, keyed by song id.

The ledger is persisted on the player row as a JSON text column. The
on-disk shape is fixed:

    {"<song id>": {"songId": ..., "attempts": ..., "startTime": ...,
                   "endTime": ..., "isCorrect": ...}, ...}

Times are epoch milliseconds.
"""

import json
import math
from dataclasses import dataclass
from typing import Dict, Iterator, Optional


@dataclass
class AttemptEntry:
    song_id: str
    attempts: int
    start_time: int
    end_time: int
    is_correct: bool

    def elapsed_seconds(self, now_ms: int) -> float:
        """Seconds since the first guess on this song."""
        return max(0, now_ms - self.start_time) / 1000.0

    def to_dict(self) -> dict:
        return {
            'songId': self.song_id,
            'attempts': self.attempts,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'isCorrect': self.is_correct,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AttemptEntry':
        try:
            return cls(
                song_id=str(data['songId']),
                attempts=int(data['attempts']),
                start_time=int(data['startTime']),
                end_time=int(data['endTime']),
                is_correct=bool(data['isCorrect']),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f'Malformed attempt entry: {data!r}') from exc


class AttemptLedger:
    def __init__(self, entries: Optional[Dict[str, AttemptEntry]] = None):
        self._entries: Dict[str, AttemptEntry] = dict(entries or {})

    def __contains__(self, song_id) -> bool:
        return song_id in self._entries

    def __getitem__(self, song_id: str) -> AttemptEntry:
        return self._entries[song_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        return isinstance(other, AttemptLedger) and self._entries == other._entries

    def get(self, song_id: str) -> Optional[AttemptEntry]:
        return self._entries.get(song_id)

    def entries(self):
        return list(self._entries.values())

    def record_guess(self, song_id: str, is_correct: bool, now_ms: int) -> AttemptEntry:
        """Count one guess for ``song_id`` and return its updated entry.

        The first guess opens the entry and fixes ``start_time``; later
        guesses bump the count, move ``end_time`` and overwrite the
        correctness flag with the latest result. Refusing guesses on an
        already solved song is up to the caller.
        """
        entry = self._entries.get(song_id)
        if entry is None:
            entry = AttemptEntry(
                song_id=song_id,
                attempts=1,
                start_time=now_ms,
                end_time=now_ms,
                is_correct=is_correct,
            )
            self._entries[song_id] = entry
        else:
            entry.attempts += 1
            entry.end_time = now_ms
            entry.is_correct = is_correct
        return entry

    def total_attempts(self) -> int:
        return sum(e.attempts for e in self._entries.values())

    def completion_time_seconds(self) -> Optional[int]:
        """Whole seconds from the first guess of any song to the last guess."""
        if not self._entries:
            return None
        first_start = min(e.start_time for e in self._entries.values())
        last_end = max(e.end_time for e in self._entries.values())
        return int(math.floor((last_end - first_start) / 1000.0 + 0.5))

    def to_dict(self) -> dict:
        return {song_id: entry.to_dict() for song_id, entry in self._entries.items()}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'AttemptLedger':
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValueError('Attempt ledger must be a JSON object')
        return cls({str(k): AttemptEntry.from_dict(v) for k, v in data.items()})

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: Optional[str]) -> 'AttemptLedger':
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError('Attempt ledger is not valid JSON') from exc
        return cls.from_dict(data)

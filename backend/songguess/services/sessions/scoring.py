"""Point and experience calculations for song guesses.

Everything here is pure: callers pass in attempt counts and elapsed times
and get back integers (or small breakdown records). Nothing touches the
database or the socket layer.
"""

import math
from dataclasses import dataclass, asdict
from typing import Optional


BASE_POINTS_PER_SONG = 100

# Keyed by attempt number; anything past the third attempt earns nothing.
ATTEMPT_BONUSES = {1: 50, 2: 25, 3: 10}

# (upper bound in seconds, points, label), checked in order with <=.
TIME_TIERS = (
    (5, 25, 'Lightning Fast'),
    (15, 15, 'Very Fast'),
    (30, 10, 'Fast'),
    (60, 5, 'Moderate'),
)

ATTEMPT_LABELS = {1: 'Perfect Accuracy', 2: 'Good Accuracy', 3: 'Acceptable Accuracy'}

PERFECT_GAME_BONUS = 200
SPEED_RUN_BONUS = 100
FIRST_TO_FINISH_BONUS = 150
SPEED_RUN_THRESHOLD_SEC = 300

BASE_XP_PER_SONG = 25
ATTEMPT_XP_BONUSES = {1: 15, 2: 10, 3: 5}
TIME_XP_BONUSES = (10, 8, 5, 3)

# (minimum level, multiplier), highest first.
LEVEL_MULTIPLIERS = (
    (51, 1.5),
    (26, 1.2),
    (11, 1.1),
)


@dataclass(frozen=True)
class SongScoringBreakdown:
    base_points: int
    attempt_bonus: int
    time_bonus: int
    total_points: int
    attempt_bonus_label: str
    time_bonus_label: str

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class CompletionBonuses:
    perfect_game: int = 0
    speed_run: int = 0
    first_to_finish: int = 0

    @property
    def total(self) -> int:
        return self.perfect_game + self.speed_run + self.first_to_finish

    def to_dict(self):
        return asdict(self)


def _time_tier(elapsed_seconds: float) -> Optional[int]:
    for idx, (limit, _points, _label) in enumerate(TIME_TIERS):
        if elapsed_seconds <= limit:
            return idx
    return None


def attempt_bonus(attempts: int) -> int:
    return ATTEMPT_BONUSES.get(attempts, 0)


def time_bonus(elapsed_seconds: float) -> int:
    tier = _time_tier(elapsed_seconds)
    return TIME_TIERS[tier][1] if tier is not None else 0


def song_points(attempts: int, elapsed_seconds: float, is_correct: bool) -> int:
    """Points for one song: base + attempt bonus + time bonus, or 0 if wrong."""
    if not is_correct:
        return 0
    return BASE_POINTS_PER_SONG + attempt_bonus(attempts) + time_bonus(elapsed_seconds)


def scoring_breakdown(attempts: int, elapsed_seconds: float, is_correct: bool) -> SongScoringBreakdown:
    if not is_correct:
        return SongScoringBreakdown(0, 0, 0, 0, 'Incorrect', 'Incorrect')

    a_bonus = attempt_bonus(attempts)
    t_bonus = time_bonus(elapsed_seconds)
    tier = _time_tier(elapsed_seconds)
    return SongScoringBreakdown(
        base_points=BASE_POINTS_PER_SONG,
        attempt_bonus=a_bonus,
        time_bonus=t_bonus,
        total_points=BASE_POINTS_PER_SONG + a_bonus + t_bonus,
        attempt_bonus_label=ATTEMPT_LABELS.get(attempts, 'No Accuracy Bonus'),
        time_bonus_label=TIME_TIERS[tier][2] if tier is not None else 'No Time Bonus',
    )


def completion_bonuses(
    songs_completed: int,
    total_songs: int,
    completion_time_seconds: float,
    first_to_finish: Optional[bool],
) -> CompletionBonuses:
    """Flat bonuses awarded once a player has finished the playlist.

    ``first_to_finish`` must be exactly ``True`` to earn its bonus; ``None``
    (single player, or not decided) and ``False`` both yield 0.
    """
    return CompletionBonuses(
        perfect_game=PERFECT_GAME_BONUS if songs_completed == total_songs else 0,
        speed_run=SPEED_RUN_BONUS if completion_time_seconds <= SPEED_RUN_THRESHOLD_SEC else 0,
        first_to_finish=FIRST_TO_FINISH_BONUS if first_to_finish is True else 0,
    )


def total_score(song_points_sum: int, bonuses: CompletionBonuses) -> int:
    return song_points_sum + bonuses.total


def level_multiplier(level: int) -> float:
    for minimum, multiplier in LEVEL_MULTIPLIERS:
        if level >= minimum:
            return multiplier
    return 1.0


def song_xp(attempts: int, elapsed_seconds: float, is_correct: bool, player_level: int) -> int:
    """Experience for one song, used by account progression only."""
    if not is_correct:
        return 0
    tier = _time_tier(elapsed_seconds)
    t_bonus = TIME_XP_BONUSES[tier] if tier is not None else 0
    raw = BASE_XP_PER_SONG + ATTEMPT_XP_BONUSES.get(attempts, 0) + t_bonus
    # Halves round up.
    return int(math.floor(raw * level_multiplier(player_level) + 0.5))

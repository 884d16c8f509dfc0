import pytest

from songguess.services.sessions import scoring


@pytest.mark.parametrize('attempts,elapsed,expected', [
    (1, 0, 175),
    (1, 5, 175),
    (1, 5.01, 165),
    (1, 15, 165),
    (1, 30, 160),
    (1, 60, 155),
    (1, 61, 150),
    (2, 0, 150),
    (2, 5.01, 140),
    (2, 30, 135),
    (3, 5, 135),
    (3, 60, 115),
    (4, 5, 125),
    (4, 61, 100),
    (5, 15, 115),
])
def test_song_points_tiers(attempts, elapsed, expected):
    assert scoring.song_points(attempts, elapsed, True) == expected


@pytest.mark.parametrize('attempts', [1, 2, 3, 4, 5])
@pytest.mark.parametrize('elapsed', [0, 5, 5.01, 15, 30, 60, 61])
def test_incorrect_guess_scores_nothing(attempts, elapsed):
    assert scoring.song_points(attempts, elapsed, False) == 0


@pytest.mark.parametrize('elapsed,label', [
    (5, 'Lightning Fast'),
    (15, 'Very Fast'),
    (30, 'Fast'),
    (60, 'Moderate'),
    (60.5, 'No Time Bonus'),
])
def test_breakdown_time_labels(elapsed, label):
    assert scoring.scoring_breakdown(1, elapsed, True).time_bonus_label == label


def test_breakdown_matches_points():
    b = scoring.scoring_breakdown(2, 20, True)
    assert (b.base_points, b.attempt_bonus, b.time_bonus, b.total_points) == (100, 25, 10, 135)
    assert b.attempt_bonus_label == 'Good Accuracy'
    assert scoring.scoring_breakdown(4, 20, True).attempt_bonus_label == 'No Accuracy Bonus'


def test_breakdown_for_wrong_guess():
    b = scoring.scoring_breakdown(1, 1, False)
    assert b.total_points == 0
    assert b.attempt_bonus_label == 'Incorrect'
    assert b.time_bonus_label == 'Incorrect'


@pytest.mark.parametrize('completed,total,seconds,first,expected', [
    (3, 3, 300, True, (200, 100, 150)),
    (3, 3, 301, None, (200, 0, 0)),
    (2, 3, 10, False, (0, 100, 0)),
    (3, 3, 10, None, (200, 100, 0)),
])
def test_completion_bonuses(completed, total, seconds, first, expected):
    bonuses = scoring.completion_bonuses(completed, total, seconds, first)
    assert (bonuses.perfect_game, bonuses.speed_run, bonuses.first_to_finish) == expected


def test_first_to_finish_requires_exact_true():
    # Truthy but not True must not earn the bonus
    assert scoring.completion_bonuses(1, 1, 0, 1).first_to_finish == 0


def test_total_score_adds_bonuses():
    bonuses = scoring.CompletionBonuses(perfect_game=200, speed_run=100, first_to_finish=0)
    assert scoring.total_score(485, bonuses) == 785


@pytest.mark.parametrize('level,multiplier', [
    (1, 1.0), (10, 1.0), (11, 1.1), (25, 1.1), (26, 1.2), (50, 1.2), (51, 1.5), (99, 1.5),
])
def test_level_multiplier(level, multiplier):
    assert scoring.level_multiplier(level) == multiplier


def test_song_xp():
    assert scoring.song_xp(1, 2, True, 1) == 50
    assert scoring.song_xp(4, 120, True, 1) == 25
    assert scoring.song_xp(1, 2, False, 60) == 0
    # (25 + 10 + 0) * 1.5 = 52.5 rounds half up
    assert scoring.song_xp(2, 61, True, 51) == 53

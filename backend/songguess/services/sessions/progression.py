from songguess import db
from songguess.models import User

LEVEL_UP_EXPERIENCE = 100


def add_experience(user: User, points: int) -> bool:
    """Add experience to ``user``; returns True if they levelled up.

    At most one level is gained per call and the overflow carries into the
    new level. The caller commits.
    """
    level_experience = (user.level_experience or 0) + points
    user.total_experience = (user.total_experience or 0) + points
    levelled_up = False
    if level_experience >= LEVEL_UP_EXPERIENCE:
        user.level = (user.level or 1) + 1
        level_experience -= LEVEL_UP_EXPERIENCE
        levelled_up = True
    user.level_experience = level_experience
    db.session.add(user)
    return levelled_up

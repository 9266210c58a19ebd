"""Daily streak rule."""

from datetime import datetime, tzinfo

from signage.models.progress import StreakUpdate


def practice_day_gap(last_practice: datetime, now: datetime, tz: tzinfo) -> int:
    """Whole calendar days between two instants, counted in ``tz``."""
    today = now.astimezone(tz).date()
    last_day = last_practice.astimezone(tz).date()
    return (today - last_day).days


def compute_streak(
    last_practice: datetime | None,
    current_streak: int,
    longest_streak: int,
    now: datetime,
    tz: tzinfo,
) -> StreakUpdate:
    """
    Recompute a streak for a practice event happening at ``now``.

    Same-day practice keeps the streak, the next calendar day extends it and
    any other gap (including a last practice in the future) restarts it at 1.
    """
    if last_practice is None:
        new_streak = 1
    else:
        gap = practice_day_gap(last_practice, now, tz)
        if gap == 0:
            new_streak = current_streak
        elif gap == 1:
            new_streak = current_streak + 1
        else:
            new_streak = 1

    return StreakUpdate(
        streak=new_streak,
        longest_streak=max(new_streak, longest_streak),
    )

"""Learning streak calculation.

A streak is the run of consecutive calendar days (UTC) with at least one
qualifying activity, ending at the most recent active day.
"""

from dataclasses import replace
from datetime import date
from typing import Iterable

from mastery_engine.modules.metrics.interface import CumulativeStats
from mastery_engine.shared.datetime_utils import days_between


def compute_streak(activity_dates: Iterable[date]) -> int:
    """Length of the contiguous run of days ending at the latest active day.

    Duplicate days count once; order of the input does not matter.

    Args:
        activity_dates: Days with at least one qualifying activity

    Returns:
        Streak length in days (0 when there is no activity)
    """
    days = sorted(set(activity_dates), reverse=True)
    if not days:
        return 0

    streak = 1
    for newer, older in zip(days, days[1:]):
        if days_between(older, newer) != 1:
            break
        streak += 1
    return streak


def advance_streak(stats: CumulativeStats, activity_date: date) -> CumulativeStats:
    """Fold one active day into the stored streak.

    Same day leaves the streak unchanged, the next day extends it by one,
    and any longer gap restarts it at 1. Days older than the last active
    day are ignored.
    """
    last = stats.last_active_date
    if last is None:
        streak = 1
    else:
        gap = days_between(last, activity_date)
        if gap <= 0:
            return stats
        streak = stats.streak_days + 1 if gap == 1 else 1

    return replace(
        stats,
        streak_days=streak,
        longest_streak_days=max(stats.longest_streak_days, streak),
        last_active_date=activity_date,
    )

import logging
from typing import Iterable, NamedTuple

from sqlalchemy.orm import Session

import crud
from models import LogStatus

logger = logging.getLogger(__name__)


class StreakResult(NamedTuple):
    current_streak: int
    longest_streak: int


NO_STREAK = StreakResult(0, 0)


def _is_completed(log) -> bool:
    # anything outside the known statuses counts as not completed
    return log.status == LogStatus.completed


def _current_streak(logs) -> int:
    streak = 0
    last_date = None

    for log in reversed(logs):
        if last_date is None:
            if not _is_completed(log):
                break
            streak = 1
        elif (last_date - log.date).days == 1 and _is_completed(log):
            streak += 1
        else:
            break
        last_date = log.date

    return streak


def _longest_run(logs) -> int:
    streak = 0
    max_streak = 0
    last_date = None

    for log in logs:
        if not _is_completed(log):
            streak = 0
            last_date = None
            continue

        if last_date is None:
            streak = 1
        else:
            gap = (log.date - last_date).days
            if gap == 1:
                streak += 1
            elif gap > 1:
                streak = 1
            # gap == 0 is a duplicate day and is not counted twice

        max_streak = max(max_streak, streak)
        last_date = log.date

    return max_streak


def calculate_streaks(logs: Iterable, previous_longest: int = 0) -> StreakResult:
    """
    Compute current and longest streak from a habit's logs.

    `logs` must be sorted by date ascending; each item needs `date` and `status`.
    The current streak counts back from the latest log while days stay
    consecutive and completed. Gaps are measured on log dates only, the
    habit's scheduled weekdays are not consulted.
    The longest streak never drops below `previous_longest`.
    """
    logs = list(logs)
    if not logs:
        return NO_STREAK

    current = _current_streak(logs)
    longest = max(_longest_run(logs), previous_longest or 0)
    return StreakResult(current, longest)


def recompute_streaks(db: Session, habit_id: int) -> StreakResult:
    """
    Recalculate and persist the streak fields of a habit.

    Called after every log write. Failures are logged and swallowed so the
    log write itself still succeeds; the next write will retry.
    """
    try:
        habit = crud.get_habit(db, habit_id)
        if habit is None:
            logger.warning("Streak update skipped: habit %s not found", habit_id)
            return NO_STREAK

        logs = crud.list_logs_for_habit(db, habit_id)
        if not logs:
            return NO_STREAK

        result = calculate_streaks(logs, previous_longest=habit.longest_streak)
        crud.update_habit_streaks(db, habit, result.current_streak, result.longest_streak)
        logger.debug(
            "Habit %s streaks: current=%s longest=%s",
            habit_id, result.current_streak, result.longest_streak,
        )
        return result
    except Exception:
        db.rollback()
        logger.exception("Streak update failed for habit %s", habit_id)
        return NO_STREAK

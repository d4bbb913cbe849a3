from typing import Iterable

from sqlalchemy.orm import Session

import crud
from schemas import HabitStats, StatsSummary


def completion_rate(completed: int, total: int) -> float:
    if not total:
        return 0
    return completed / total * 100


def pick_best_habit(habit_stats: Iterable[HabitStats]) -> HabitStats | None:
    """Highest completion rate; on a tie the earliest entry wins."""
    best = None
    for entry in habit_stats:
        if best is None or entry.completion_rate > best.completion_rate:
            best = entry
    return best


def build_summary(rows: Iterable[tuple]) -> StatsSummary:
    """
    rows: (habit, completed_count, total_count) per habit.
    The overall rate is the ratio of all completed logs to all logs,
    not the mean of per-habit rates.
    """
    habit_stats: list[HabitStats] = []
    total_habits = 0
    active_habits = 0
    completed_sum = 0
    total_sum = 0

    for habit, completed, total in rows:
        total_habits += 1
        if habit.is_active:
            active_habits += 1
        completed_sum += completed
        total_sum += total
        habit_stats.append(
            HabitStats(
                id=habit.id,
                name=habit.name,
                current_streak=habit.current_streak or 0,
                longest_streak=habit.longest_streak or 0,
                completion_rate=completion_rate(completed, total),
            )
        )

    return StatsSummary(
        total_habits=total_habits,
        active_habits=active_habits,
        overall_completion_rate=completion_rate(completed_sum, total_sum),
        best_habit=pick_best_habit(habit_stats),
        habit_stats=habit_stats,
    )


def summarize(db: Session, user_id: int) -> StatsSummary:
    """Stats for all of a user's habits. Database errors propagate."""
    habits = crud.list_habits_for_user(db, user_id)
    counts = crud.count_logs_by_habit(db, [habit.id for habit in habits])
    rows = [(habit, *counts.get(habit.id, (0, 0))) for habit in habits]
    return build_summary(rows)

from datetime import date
from typing import Iterable

from sqlalchemy import case, func
from sqlalchemy.orm import Session

import models
from models import LogStatus


# -- HABITS --

def get_habit(db: Session, habit_id: int, user_id: int | None = None):
    query = db.query(models.Habit).filter(models.Habit.id == habit_id)
    if user_id is not None:
        query = query.filter(models.Habit.user_id == user_id)
    return query.first()


def list_habits_for_user(db: Session, user_id: int):
    return (
        db.query(models.Habit)
        .filter(models.Habit.user_id == user_id)
        .order_by(models.Habit.created_at.desc(), models.Habit.id.desc())
        .all()
    )


def update_habit_streaks(db: Session, habit: models.Habit, current_streak: int, longest_streak: int):
    habit.current_streak = current_streak
    habit.longest_streak = longest_streak
    db.commit()
    db.refresh(habit)
    return habit


# -- LOGS --

def list_logs_for_habit(
    db: Session,
    habit_id: int,
    start: date | None = None,
    end: date | None = None,
    descending: bool = False,
    limit: int | None = None,
):
    query = db.query(models.HabitLog).filter(models.HabitLog.habit_id == habit_id)
    if start is not None and end is not None:
        query = query.filter(models.HabitLog.date.between(start, end))
    order = models.HabitLog.date.desc() if descending else models.HabitLog.date.asc()
    query = query.order_by(order)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_log(db: Session, habit_id: int, log_date: date):
    return (
        db.query(models.HabitLog)
        .filter(models.HabitLog.habit_id == habit_id, models.HabitLog.date == log_date)
        .first()
    )


def upsert_log(
    db: Session,
    habit_id: int,
    log_date: date | None = None,
    status: str | None = None,
    notes: str | None = None,
) -> tuple[models.HabitLog, bool]:
    """
    Create the log for (habit_id, log_date) or update the existing one.
    On update, fields passed as None keep their stored value.
    Returns (log, created).
    """
    log_date = log_date or date.today()
    log = get_log(db, habit_id, log_date)
    created = log is None

    if created:
        log = models.HabitLog(
            habit_id=habit_id,
            date=log_date,
            status=status or LogStatus.completed.value,
            notes=notes or "",
        )
        db.add(log)
    else:
        if status is not None:
            log.status = status
        if notes is not None:
            log.notes = notes

    db.commit()
    db.refresh(log)
    return log, created


def count_logs(db: Session, habit_id: int, status: str | None = None) -> int:
    query = db.query(func.count(models.HabitLog.id)).filter(models.HabitLog.habit_id == habit_id)
    if status is not None:
        query = query.filter(models.HabitLog.status == status)
    return query.scalar() or 0


def count_logs_by_habit(db: Session, habit_ids: Iterable[int]) -> dict[int, tuple[int, int]]:
    """Map habit id -> (completed count, total count) in a single grouped query."""
    habit_ids = list(habit_ids)
    if not habit_ids:
        return {}

    completed = func.sum(case((models.HabitLog.status == LogStatus.completed.value, 1), else_=0))
    rows = (
        db.query(models.HabitLog.habit_id, completed, func.count(models.HabitLog.id))
        .filter(models.HabitLog.habit_id.in_(habit_ids))
        .group_by(models.HabitLog.habit_id)
        .all()
    )
    return {habit_id: (int(done or 0), int(total or 0)) for habit_id, done, total in rows}


# -- PREFERENCES --

def get_or_create_preferences(db: Session, user_id: int, **defaults):
    prefs = db.query(models.UserPreference).filter(models.UserPreference.user_id == user_id).first()
    if prefs is None:
        prefs = models.UserPreference(user_id=user_id, **defaults)
        db.add(prefs)
        db.commit()
        db.refresh(prefs)
    return prefs

import enum
import json
from datetime import date, datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Date, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Weekday(str, enum.Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"


ALL_WEEKDAYS = list(Weekday)


class LogStatus(str, enum.Enum):
    completed = "completed"
    missed = "missed"
    skipped = "skipped"


class TimeRange(str, enum.Enum):
    week = "week"
    month = "month"
    year = "year"


def parse_target_days(value):
    """
    Normalize a stored schedule into a list of Weekday in calendar order.
    Older rows hold the schedule as a JSON-encoded string instead of an array.
    """
    if value is None:
        return list(ALL_WEEKDAYS)
    while isinstance(value, str):
        value = json.loads(value)
    days = {day if isinstance(day, Weekday) else Weekday(str(day).lower()) for day in value}
    return [day for day in ALL_WEEKDAYS if day in days]


class TargetDays(TypeDecorator):
    """JSON array column that loads as a list of Weekday."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return [day.value for day in parse_target_days(value)]

    def process_result_value(self, value, dialect):
        return parse_target_days(value)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String, nullable=True)
    role = Column(String, default="user")
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    habits = relationship("Habit", back_populates="user", cascade="all, delete-orphan")
    preferences = relationship(
        "UserPreference", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    target_days = Column(TargetDays, nullable=False, default=lambda: list(ALL_WEEKDAYS))
    frequency = Column(String, nullable=False, default="daily")
    is_active = Column(Boolean, default=True)
    start_date = Column(Date, default=date.today)
    # written only by streaks.recompute_streaks
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="habits")
    logs = relationship(
        "HabitLog", back_populates="habit", cascade="all, delete-orphan", order_by="HabitLog.date"
    )


class HabitLog(Base):
    __tablename__ = "habit_logs"
    __table_args__ = (UniqueConstraint("habit_id", "date", name="uq_habit_logs_habit_date"),)

    id = Column(Integer, primary_key=True, index=True)
    habit_id = Column(Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, default=date.today)
    status = Column(String(16), nullable=False, default=LogStatus.completed.value)
    notes = Column(Text, nullable=True)

    habit = relationship("Habit", back_populates="logs")


class UserPreference(Base):
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    dark_mode = Column(Boolean, default=False)
    analytics_time_range = Column(String(8), default=TimeRange.week.value)
    show_motivational_quotes = Column(Boolean, default=True)
    notifications_enabled = Column(Boolean, default=True)

    user = relationship("User", back_populates="preferences")

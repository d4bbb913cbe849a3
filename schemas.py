from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from models import ALL_WEEKDAYS, LogStatus, TimeRange, Weekday


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, serializes as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# -- USERS --

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str | None = None


class UserOut(CamelModel):
    id: int
    email: str
    name: str | None = None
    role: str = "user"


class Token(BaseModel):
    access_token: str
    token_type: str


class PreferencesOut(CamelModel):
    dark_mode: bool
    analytics_time_range: TimeRange
    show_motivational_quotes: bool
    notifications_enabled: bool


class PreferencesUpdate(CamelModel):
    dark_mode: bool | None = None
    analytics_time_range: TimeRange | None = None
    show_motivational_quotes: bool | None = None
    notifications_enabled: bool | None = None


# -- HABITS --

class HabitCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None
    target_days: list[Weekday] = Field(default_factory=lambda: list(ALL_WEEKDAYS))
    frequency: str = "daily"
    is_active: bool = True
    start_date: date | None = None


class HabitUpdate(CamelModel):
    """No streak fields: only recomputation writes them."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    target_days: list[Weekday] | None = None
    frequency: str | None = None
    is_active: bool | None = None
    start_date: date | None = None


class HabitLogOut(CamelModel):
    id: int
    habit_id: int
    date: date
    status: str
    notes: str | None = None


class HabitOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    target_days: list[Weekday]
    frequency: str
    is_active: bool
    start_date: date | None = None
    current_streak: int
    longest_streak: int
    created_at: datetime | None = None


class HabitDetailOut(HabitOut):
    recent_logs: list[HabitLogOut] = []


class HabitLogCreate(CamelModel):
    log_date: date | None = Field(default=None, alias="date")
    status: LogStatus | None = None
    notes: str | None = None


class HabitLogUpdate(CamelModel):
    status: LogStatus | None = None
    notes: str | None = None


# -- STATS --

class HabitStats(CamelModel):
    id: int
    name: str
    current_streak: int
    longest_streak: int
    completion_rate: float


class StatsSummary(CamelModel):
    total_habits: int
    active_habits: int
    overall_completion_rate: float
    best_habit: HabitStats | None = None
    habit_stats: list[HabitStats] = []

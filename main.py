from fastapi import FastAPI, Depends, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import date
import logging
import os

from database import engine, get_db
from logging_config import setup_logging

import crud
import models
from models import User
from schemas import HabitCreate, HabitDetailOut, HabitLogCreate, HabitLogOut, HabitLogUpdate, HabitOut, HabitUpdate
from auth import router as auth_router, get_current_user
from users import router as users_router
from stats import summarize
from streaks import recompute_streaks


setup_logging()
logger = logging.getLogger(__name__)

models.Base.metadata.create_all(bind=engine)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

app = FastAPI(title="HabitVault API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth_router)
app.include_router(users_router)


RECENT_LOGS_LIMIT = 30


@app.get("/")
def root():
    return {"message": "HabitVault API is active"}

@app.get("/ping")
def ping():
    return {"message": "pong"}


def get_owned_habit(habit_id: int, db: Session, current_user: User):
    habit = crud.get_habit(db, habit_id, user_id=current_user.id)
    if not habit:
        raise HTTPException(status_code=404, detail="Habit not found")
    return habit

# --- Habits PROTECTED ---

# -- GET --

# GET stats for all the habits of the logged in user
# registered before /habits/{habit_id} so "stats" is not parsed as an id
@app.get("/habits/stats/summary")
def get_stats_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    try:
        summary = summarize(db, current_user.id)
    except SQLAlchemyError:
        logger.exception("Stats summary failed for user %s", current_user.id)
        raise HTTPException(status_code=500, detail="Error fetching statistics")
    return {"success": True, "stats": summary}


# GET all the habits for the logged in user
@app.get("/habits")
def get_habits(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    habits = crud.list_habits_for_user(db, current_user.id)
    return {"success": True, "habits": [HabitOut.model_validate(h) for h in habits]}


# GET a single habit with its latest logs
@app.get("/habits/{habit_id}")
def get_habit(habit_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    habit = get_owned_habit(habit_id, db, current_user)
    recent = crud.list_logs_for_habit(db, habit.id, descending=True, limit=RECENT_LOGS_LIMIT)

    detail = HabitDetailOut.model_validate(habit)
    detail.recent_logs = [HabitLogOut.model_validate(log) for log in recent]
    return {"success": True, "habit": detail}


# GET logs for a specific habit, optionally within [start_date, end_date]
@app.get("/habits/{habit_id}/logs")
def get_logs(
    habit_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    habit = get_owned_habit(habit_id, db, current_user)
    logs = crud.list_logs_for_habit(db, habit.id, start=start_date, end=end_date, descending=True)
    return {"success": True, "logs": [HabitLogOut.model_validate(log) for log in logs]}

# -- POST --

# CREATE a habit for the logged in user
@app.post("/habits", status_code=201)
def create_habit(habit_in: HabitCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):

    data = habit_in.model_dump(exclude_none=True)
    new_habit = models.Habit(**data, user_id=current_user.id)

    db.add(new_habit)
    db.commit()
    db.refresh(new_habit)
    logger.info("User %s created habit %s", current_user.id, new_habit.id)
    return {"success": True, "habit": HabitOut.model_validate(new_habit), "message": "Habit created successfully"}

# LOG a day for a habit (create or update the log for that date)
@app.post("/habits/{habit_id}/logs")
def log_habit(
    habit_id: int,
    log_in: HabitLogCreate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    habit = get_owned_habit(habit_id, db, current_user)

    status = log_in.status.value if log_in.status else None
    log, created = crud.upsert_log(db, habit.id, log_in.log_date, status=status, notes=log_in.notes)

    # must finish before responding so a following stats read sees fresh streaks
    recompute_streaks(db, habit.id)

    response.status_code = 201 if created else 200
    return {
        "success": True,
        "log": HabitLogOut.model_validate(log),
        "message": f"Habit {log.status} for {log.date.isoformat()}",
    }

# -- PUT --

@app.put("/habits/{habit_id}")
def update_habit(habit_id: int, habit_in: HabitUpdate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):

    habit = get_owned_habit(habit_id, db, current_user)

    for key, value in habit_in.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(habit, key, value)

    db.commit()
    db.refresh(habit)
    return {"success": True, "habit": HabitOut.model_validate(habit), "message": "Habit updated successfully"}

@app.put("/habits/{habit_id}/logs/{log_date}")
def update_log(
    habit_id: int,
    log_date: date,
    log_in: HabitLogUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    habit = get_owned_habit(habit_id, db, current_user)

    log = crud.get_log(db, habit.id, log_date)
    if not log:
        raise HTTPException(status_code=404, detail="Log not found")

    status = log_in.status.value if log_in.status else None
    log, _ = crud.upsert_log(db, habit.id, log_date, status=status, notes=log_in.notes)
    recompute_streaks(db, habit.id)

    return {"success": True, "log": HabitLogOut.model_validate(log), "message": "Log updated successfully"}

# -- DELETE --

@app.delete("/habits/{habit_id}")
def delete_habit(habit_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    habit = get_owned_habit(habit_id, db, current_user)

    db.delete(habit)
    db.commit()
    return {"success": True, "message": f"Habit {habit_id} deleted successfully"}

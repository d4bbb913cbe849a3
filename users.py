from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import crud
from auth import get_current_user
from database import get_db
from models import TimeRange, User
from schemas import PreferencesOut, PreferencesUpdate, UserOut


router = APIRouter(prefix="/users", tags=["Users"])

DEFAULT_PREFERENCES = {
    "dark_mode": False,
    "analytics_time_range": TimeRange.week.value,
    "show_motivational_quotes": True,
    "notifications_enabled": True,
}


# GET the logged in user with their preferences
@router.get("/profile")
def get_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    prefs = crud.get_or_create_preferences(db, current_user.id, **DEFAULT_PREFERENCES)
    return {
        "success": True,
        "user": UserOut.model_validate(current_user),
        "preferences": PreferencesOut.model_validate(prefs),
    }


@router.get("/preferences")
def get_preferences(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    prefs = crud.get_or_create_preferences(db, current_user.id, **DEFAULT_PREFERENCES)
    return {"success": True, "preferences": PreferencesOut.model_validate(prefs)}


# UPDATE only the fields that were sent
@router.put("/preferences")
def update_preferences(
    prefs_in: PreferencesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prefs = crud.get_or_create_preferences(db, current_user.id, **DEFAULT_PREFERENCES)

    for key, value in prefs_in.model_dump(exclude_unset=True, exclude_none=True, mode="json").items():
        setattr(prefs, key, value)

    db.commit()
    db.refresh(prefs)
    return {"success": True, "preferences": PreferencesOut.model_validate(prefs), "message": "Preferences updated successfully"}

import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import Activity, Category, User
from .timeline import CategoryWithDuration, compute_summary, resolve_hour_occupancy

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"name": "Work", "color": "#4A90E2", "description": "Work-related activities"},
    {"name": "Sleep", "color": "#9B59B6", "description": "Time asleep"},
    {"name": "Meals", "color": "#FF9500", "description": "Meals and breaks"},
    {"name": "Exercise", "color": "#34C759", "description": "Sports and exercise"},
    {"name": "Other", "color": "#95A5A6", "description": "Everything else"},
]


# Users

def get_user_by_nickname(db: Session, nickname: str) -> Optional[User]:
    return db.execute(select(User).where(User.nickname == nickname)).scalar_one_or_none()


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def create_user(db: Session, nickname: str) -> User:
    user = User(nickname=nickname)
    db.add(user)
    db.flush()
    for default in DEFAULT_CATEGORIES:
        db.add(Category(user_id=user.id, **default))
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s) with %d default categories", user.id, nickname, len(DEFAULT_CATEGORIES))
    return user


# Categories

def list_categories(db: Session, user_id: int) -> List[Category]:
    return (
        db.execute(select(Category).where(Category.user_id == user_id).order_by(Category.id))
        .scalars()
        .all()
    )


def get_category(db: Session, category_id: int) -> Optional[Category]:
    return db.get(Category, category_id)


def create_category(db: Session, user_id: int, name: str, color: str, description: Optional[str] = None) -> Category:
    category = Category(user_id=user_id, name=name, color=color, description=description or None)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def update_category(db: Session, category_id: int, **changes) -> Optional[Category]:
    category = db.get(Category, category_id)
    if category is None:
        return None
    for field, value in changes.items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    return category


def category_in_use(db: Session, category_id: int) -> bool:
    used = db.execute(select(Activity.id).where(Activity.category_id == category_id).limit(1)).first()
    return used is not None


def delete_category(db: Session, category_id: int) -> bool:
    """Delete a category unless an activity still points at it."""
    category = db.get(Category, category_id)
    if category is None:
        return False
    if category_in_use(db, category_id):
        logger.info("Refusing to delete category %s: still referenced by activities", category_id)
        return False
    db.delete(category)
    db.commit()
    return True


# Activities

def list_activities(db: Session, user_id: int, day: str) -> List[Activity]:
    # creation order decides which overlapping activity owns an hour
    return (
        db.execute(
            select(Activity)
            .where(Activity.user_id == user_id, Activity.date == day)
            .order_by(Activity.id)
        )
        .scalars()
        .all()
    )


def get_activity(db: Session, activity_id: int) -> Optional[Activity]:
    return db.get(Activity, activity_id)


def create_activity(db: Session, **fields) -> Activity:
    activity = Activity(**fields)
    if not activity.notes:
        activity.notes = None
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


def update_activity(db: Session, activity_id: int, **changes) -> Optional[Activity]:
    activity = db.get(Activity, activity_id)
    if activity is None:
        return None
    for field, value in changes.items():
        setattr(activity, field, value)
    db.commit()
    db.refresh(activity)
    return activity


def delete_activity(db: Session, activity_id: int) -> bool:
    activity = db.get(Activity, activity_id)
    if activity is None:
        return False
    db.delete(activity)
    db.commit()
    return True


# Day views

def get_activity_summary(db: Session, user_id: int, day: str) -> List[CategoryWithDuration]:
    return compute_summary(list_activities(db, user_id, day), list_categories(db, user_id))


def get_hour_occupancy(db: Session, user_id: int, day: str) -> Dict[int, Optional[Activity]]:
    return resolve_hour_occupancy(list_activities(db, user_id, day))

"""Hour occupancy and per-category totals for one user's day.

Both entry points are pure: they read the activities and categories handed
to them (ORM rows or API schemas, anything with the right attributes) and
return new values without touching the inputs or the database.

Overlapping activities are allowed. For the clock face each hour belongs to
the first activity, in input order, that covers it. The summary ignores that
choice and counts every activity's full duration, so percentages across
categories can add up to more than 100.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

HOURS_PER_DAY = 24


@dataclass(frozen=True)
class CategoryWithDuration:
    id: int
    user_id: int
    name: str
    color: str
    description: Optional[str]
    hours: int = 0
    percentage: int = 0


def activity_duration(activity) -> int:
    """Length of an activity in hours; an end before the start wraps past midnight."""
    duration = activity.end_hour - activity.start_hour
    if duration < 0:
        duration += HOURS_PER_DAY
    return duration


def occupies(activity, hour: int) -> bool:
    return activity.start_hour <= hour < activity.end_hour


def resolve_hour_occupancy(activities: Sequence) -> Dict[int, Optional[object]]:
    """Map every hour 0..23 to the activity shown in it, or None.

    The scan keeps the order of ``activities`` and stops at the first match,
    so callers decide precedence by how they order the list.
    """
    occupancy = {}
    for hour in range(HOURS_PER_DAY):
        occupancy[hour] = None
        for activity in activities:
            if occupies(activity, hour):
                occupancy[hour] = activity
                break
    return occupancy


def day_percentage(hours: int) -> int:
    # half-up, not Python's round-half-even
    return int(math.floor(hours / HOURS_PER_DAY * 100 + 0.5))


def compute_summary(activities: Iterable, categories: Sequence) -> List[CategoryWithDuration]:
    """Total hours and share of the day for every category, in category order.

    Activities whose category is not in ``categories`` are skipped.
    """
    hours = {category.id: 0 for category in categories}
    for activity in activities:
        if activity.category_id not in hours:
            continue
        hours[activity.category_id] += activity_duration(activity)

    return [
        CategoryWithDuration(
            id=category.id,
            user_id=category.user_id,
            name=category.name,
            color=category.color,
            description=category.description,
            hours=hours[category.id],
            percentage=day_percentage(hours[category.id]),
        )
        for category in categories
    ]

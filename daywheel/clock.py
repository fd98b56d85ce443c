"""SVG geometry for the 24-hour clock face on the dashboard."""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from .timeline import HOURS_PER_DAY

EMPTY_COLOR = "rgba(229, 231, 235, 0.4)"

PALETTE = {
    "red": "#E74C3C",
    "purple": "#9B59B6",
    "blue": "#4A90E2",
    "orange": "#FF9500",
    "green": "#34C759",
    "gray": "#95A5A6",
}


@dataclass(frozen=True)
class Segment:
    hour: int
    path: str
    fill: str
    label: str
    label_x: float
    label_y: float
    marker_x: float
    marker_y: float
    activity_id: Optional[int] = None


def color_by_name(name: str) -> str:
    return PALETTE.get(name.lower(), name)


def contrast_color(hex_color: str) -> str:
    """Black or white text, whichever reads better on ``hex_color``."""
    hex_color = color_by_name(hex_color).lstrip("#")
    if len(hex_color) != 6:
        return "#000000"
    r, g, b = (int(hex_color[i:i + 2], 16) for i in (0, 2, 4))
    brightness = (r * 299 + g * 587 + b * 114) / 1000
    return "#000000" if brightness > 128 else "#FFFFFF"


def _point(angle_deg: float, radius: float, center: float):
    radians = math.radians(angle_deg)
    return math.cos(radians) * radius + center, math.sin(radians) * radius + center


def ring_segments(occupancy: Dict[int, Optional[object]], size: int = 300) -> List[Segment]:
    center = size / 2
    inner = center * 0.5
    outer = center * 0.85
    marker_radius = center * 0.9
    label_radius = inner + (outer - inner) / 2

    segments = []
    for hour in range(HOURS_PER_DAY):
        # hour 0 sits at twelve o'clock
        start_angle = hour / HOURS_PER_DAY * 360 - 90
        end_angle = (hour + 1) / HOURS_PER_DAY * 360 - 90

        x1, y1 = _point(start_angle, inner, center)
        ex1, ey1 = _point(end_angle, inner, center)
        x2, y2 = _point(start_angle, outer, center)
        ex2, ey2 = _point(end_angle, outer, center)
        path = (
            f"M {x1:.2f} {y1:.2f} "
            f"L {x2:.2f} {y2:.2f} "
            f"A {outer:.2f} {outer:.2f} 0 0 1 {ex2:.2f} {ey2:.2f} "
            f"L {ex1:.2f} {ey1:.2f} "
            f"A {inner:.2f} {inner:.2f} 0 0 0 {x1:.2f} {y1:.2f} Z"
        )

        marker_x, marker_y = _point(start_angle, marker_radius, center)
        label_x, label_y = _point((start_angle + end_angle) / 2, label_radius, center)

        activity = occupancy.get(hour)
        category = getattr(activity, "category", None)
        segments.append(
            Segment(
                hour=hour,
                path=path,
                fill=color_by_name(category.color) if category is not None else EMPTY_COLOR,
                label=category.name if category is not None else "",
                label_x=round(label_x, 2),
                label_y=round(label_y, 2),
                marker_x=round(marker_x, 2),
                marker_y=round(marker_y, 2),
                activity_id=activity.id if activity is not None else None,
            )
        )
    return segments

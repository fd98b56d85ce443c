from datetime import date as date_type
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def check_calendar_date(value: str) -> str:
    """Reject well-formed strings that are not real days, such as 2024-13-45."""
    try:
        date_type.fromisoformat(value)
    except ValueError:
        raise ValueError(f"{value} is not a valid date")
    return value


def reject_null(value):
    if value is None:
        raise ValueError("may not be null")
    return value


class ApiModel(BaseModel):
    # camelCase on the wire, snake_case accepted too
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserCreate(ApiModel):
    nickname: str = Field(min_length=1, max_length=100)


class UserOut(ApiModel):
    id: int
    nickname: str


class CategoryCreate(ApiModel):
    user_id: int
    name: str = Field(min_length=1, max_length=100)
    color: str = Field(min_length=1, max_length=20)
    description: Optional[str] = None


class CategoryUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, min_length=1, max_length=20)
    description: Optional[str] = None

    @field_validator("name", "color")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class CategoryOut(ApiModel):
    id: int
    user_id: int
    name: str
    color: str
    description: Optional[str] = None


class CategoryWithDurationOut(CategoryOut):
    hours: int
    percentage: int


class ActivityCreate(ApiModel):
    user_id: int
    category_id: int = Field(ge=1)
    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=1, le=24)
    date: str = Field(pattern=DATE_PATTERN)
    notes: Optional[str] = None
    title: str = "Activity"

    @field_validator("date")
    @classmethod
    def real_date(cls, value):
        return check_calendar_date(value)

    @model_validator(mode="after")
    def check_hours(self):
        if self.start_hour >= self.end_hour:
            raise ValueError("startHour must be before endHour")
        return self


class ActivityUpdate(ApiModel):
    category_id: Optional[int] = Field(default=None, ge=1)
    start_hour: Optional[int] = Field(default=None, ge=0, le=23)
    end_hour: Optional[int] = Field(default=None, ge=1, le=24)
    date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    notes: Optional[str] = None
    title: Optional[str] = None

    @field_validator("category_id", "start_hour", "end_hour", "title")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)

    @field_validator("date")
    @classmethod
    def real_date(cls, value):
        return check_calendar_date(reject_null(value))

    @model_validator(mode="after")
    def check_hours(self):
        if self.start_hour is not None and self.end_hour is not None and self.start_hour >= self.end_hour:
            raise ValueError("startHour must be before endHour")
        return self


class ActivityOut(ApiModel):
    id: int
    user_id: int
    category_id: int
    date: str
    start_hour: int
    end_hour: int
    notes: Optional[str] = None
    title: str


class ActivityWithCategoryOut(ActivityOut):
    category: Optional[CategoryOut] = None


class HourSlotOut(ApiModel):
    hour: int
    activity: Optional[ActivityOut] = None

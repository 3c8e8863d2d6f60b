"""Habit data model."""

import re
from datetime import date

from pydantic import Field, field_validator

from lifeup.models.base import CamelModel, new_id

DEFAULT_ICON = "✨"
DEFAULT_COLOR = "bg-emerald-100 text-emerald-600"

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Habit(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR
    streak: int = Field(default=0, ge=0)
    completed_dates: list[date] = Field(default_factory=list)
    reminder_time: str | None = None  # "HH:MM"

    @field_validator("completed_dates")
    @classmethod
    def _unique_days(cls, days: list[date]) -> list[date]:
        # Order of first appearance is kept; repeated days are dropped.
        return list(dict.fromkeys(days))

    @field_validator("reminder_time")
    @classmethod
    def _valid_time(cls, value: str | None) -> str | None:
        if value is not None and not _TIME_RE.match(value):
            raise ValueError(f"reminder time must be HH:MM, got {value!r}")
        return value

    def is_completed_on(self, day: date) -> bool:
        return day in self.completed_dates


def seed_habits() -> list[Habit]:
    """Habits created on first run."""
    return [
        Habit(
            name="Morning run",
            icon="🏃",
            color="bg-orange-100 text-orange-600",
            reminder_time="07:00",
        ),
        Habit(name="Drink water", icon="💧", color="bg-blue-100 text-blue-600"),
    ]

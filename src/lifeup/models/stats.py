"""User progression stats and navigation state."""

from datetime import date
from enum import StrEnum

from pydantic import ConfigDict, Field, computed_field

from lifeup.models.base import CamelModel

DEFAULT_NAME = "Achiever"
XP_PER_LEVEL = 100


def level_for_xp(xp: int) -> int:
    """Level derived from total experience: one level per 100 XP, starting at 1."""
    return max(0, xp) // XP_PER_LEVEL + 1


class View(StrEnum):
    """Top-level views of the app shell."""

    HABITS = "habits"
    JOURNAL = "journal"
    ENGLISH = "english"


class UserStats(CamelModel):
    """Singleton progression state.

    Instances are frozen: every action produces a new value. ``level`` is
    computed from ``xp`` and any stored ``level`` is ignored on load.
    """

    model_config = ConfigDict(frozen=True)

    name: str = DEFAULT_NAME
    xp: int = Field(default=0, ge=0)
    coins: int = Field(default=0, ge=0)
    last_side_quest_date: date | None = None

    @computed_field
    @property
    def level(self) -> int:
        return level_for_xp(self.xp)

    @property
    def xp_into_level(self) -> int:
        """Progress towards the next level (0-99)."""
        return self.xp % XP_PER_LEVEL

    def renamed(self, name: str) -> "UserStats":
        """Return stats with a new display name; blank input keeps the old one."""
        name = name.strip()
        if not name:
            return self
        return self.model_copy(update={"name": name})

"""Journal entry data model."""

from datetime import datetime
from enum import StrEnum

from pydantic import Field, computed_field, model_validator

from lifeup.models.base import CamelModel, new_id


class Mood(StrEnum):
    HAPPY = "happy"
    NEUTRAL = "neutral"
    SAD = "sad"
    EXCITED = "excited"
    TIRED = "tired"


class ImageLayout(StrEnum):
    """How an entry's images are arranged by the shell."""

    NONE = "none"
    SINGLE = "single"  # one image, full width
    PAIR = "pair"  # two-column grid
    GRID = "grid"  # dense square grid

    @classmethod
    def for_count(cls, count: int) -> "ImageLayout":
        if count <= 0:
            return cls.NONE
        elif count == 1:
            return cls.SINGLE
        elif count == 2:
            return cls.PAIR
        return cls.GRID


class JournalEntry(CamelModel):
    """A saved journal entry. Entries are never edited after creation."""

    id: str = Field(default_factory=new_id)
    date: datetime = Field(default_factory=datetime.now)
    content: str = ""
    mood: Mood = Mood.NEUTRAL
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)  # data URLs

    @model_validator(mode="after")
    def _not_empty(self) -> "JournalEntry":
        if not self.content.strip() and not self.images:
            raise ValueError("journal entry needs text or at least one image")
        return self

    @computed_field
    @property
    def image_layout(self) -> ImageLayout:
        return ImageLayout.for_count(len(self.images))

"""English study article data model."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from lifeup.models.base import CamelModel, new_id

DEFAULT_TITLE = "Untitled Article"
CUSTOM_DIFFICULTY = "Custom"


class VocabularyItem(BaseModel):
    word: str
    definition: str


class EnglishArticle(CamelModel):
    id: str = Field(default_factory=new_id)
    title: str = DEFAULT_TITLE
    content: str
    difficulty: str | None = None  # Beginner / Intermediate / Advanced / Custom
    added_date: datetime = Field(default_factory=datetime.now)
    last_completed_date: date | None = None
    completion_count: int = Field(default=0, ge=0)
    vocabulary: list[VocabularyItem] = Field(default_factory=list)

    def completed_on(self, day: date) -> bool:
        return self.last_completed_date == day


class FetchedArticle(BaseModel):
    """Article document returned by the article-fetch service."""

    title: str
    content: str
    difficulty: str = "Intermediate"
    vocabulary: list[VocabularyItem] = Field(default_factory=list)

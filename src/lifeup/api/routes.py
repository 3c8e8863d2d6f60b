"""REST API routes consumed by the app shell."""

import contextlib
from datetime import date

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile
from fastapi.responses import Response
from pydantic import Field

from lifeup.config import get_settings
from lifeup.confirmation import ConfirmationGate, PendingAction
from lifeup.english.fetcher import ArticleFetcher
from lifeup.english.library import ArticleLibrary, RecitationResult, Token
from lifeup.errors import InsufficientCoins, LifeUpError, NotFound, ValidationRejected
from lifeup.habits.calendar import reminder_event
from lifeup.habits.registry import DaySummary, HabitRegistry, ToggleResult
from lifeup.journal.archive import JournalArchive, JournalDraft
from lifeup.models.article import EnglishArticle
from lifeup.models.base import CamelModel
from lifeup.models.habit import Habit
from lifeup.models.journal import JournalEntry, Mood
from lifeup.models.stats import UserStats, View
from lifeup.progression.engine import (
    RewardOutcome,
    buy_mystery_box,
    complete_side_quest,
    side_quest_done,
    side_quest_for,
)
from lifeup.storage.stats import load_stats, load_view, rename_user, save_stats, save_view
from lifeup.storage.store import JsonStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class NameUpdate(CamelModel):
    name: str


class ViewUpdate(CamelModel):
    view: View


class NewHabit(CamelModel):
    name: str
    icon: str | None = None
    color: str | None = None
    reminder_time: str | None = None


class ToggleRequest(CamelModel):
    day: date | None = None  # defaults to today


class NewJournalEntry(CamelModel):
    content: str = ""
    mood: Mood = Mood.NEUTRAL
    images: list[str] = Field(default_factory=list)


class NewArticle(CamelModel):
    title: str = ""
    content: str


class FetchRequest(CamelModel):
    topic: str = "general"


class QuestStatus(CamelModel):
    day: date
    quest: str
    done: bool


class StagedImage(CamelModel):
    image: str


def get_store() -> JsonStore:
    return JsonStore(get_settings().storage_dir)


def get_gate(request: Request) -> ConfirmationGate:
    return request.app.state.gate


def get_fetcher(request: Request) -> ArticleFetcher:
    return request.app.state.fetcher


@contextlib.contextmanager
def user_errors():
    """Translate domain rejections into HTTP errors carrying the user-facing message."""
    try:
        yield
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except (ValidationRejected, InsufficientCoins) as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except LifeUpError as e:
        raise HTTPException(status_code=503, detail=e.message) from e


def _commit(store: JsonStore, outcome: RewardOutcome | None) -> None:
    if outcome is not None and outcome.rewarded:
        save_stats(store, outcome.stats)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


# Stats, side quest and shop

@router.get("/stats")
async def get_stats(store: JsonStore = Depends(get_store)) -> UserStats:
    return load_stats(store)


@router.put("/stats/name")
async def put_name(body: NameUpdate, store: JsonStore = Depends(get_store)) -> UserStats:
    return rename_user(store, body.name)


@router.get("/quest")
async def get_quest(store: JsonStore = Depends(get_store)) -> QuestStatus:
    today = date.today()
    stats = load_stats(store)
    return QuestStatus(day=today, quest=side_quest_for(today), done=side_quest_done(stats, today))


@router.post("/quest/complete")
async def post_quest_complete(store: JsonStore = Depends(get_store)) -> RewardOutcome:
    outcome = complete_side_quest(load_stats(store), date.today())
    _commit(store, outcome)
    return outcome


@router.post("/shop/mystery-box")
async def post_mystery_box(store: JsonStore = Depends(get_store)) -> RewardOutcome:
    with user_errors():
        outcome = buy_mystery_box(load_stats(store))
    _commit(store, outcome)
    return outcome


@router.get("/view")
async def get_view(store: JsonStore = Depends(get_store)) -> ViewUpdate:
    return ViewUpdate(view=load_view(store))


@router.put("/view")
async def put_view(body: ViewUpdate, store: JsonStore = Depends(get_store)) -> ViewUpdate:
    save_view(store, body.view)
    return body


# Habits

@router.get("/habits")
async def list_habits(store: JsonStore = Depends(get_store)) -> list[Habit]:
    return HabitRegistry(store).list_habits()


@router.post("/habits", status_code=201)
async def create_habit(body: NewHabit, store: JsonStore = Depends(get_store)) -> Habit:
    with user_errors():
        try:
            return HabitRegistry(store).add_habit(
                body.name, body.icon, body.color, body.reminder_time
            )
        except ValueError as e:
            raise ValidationRejected(str(e)) from e


@router.get("/habits/progress")
async def habits_progress(day: date | None = None, store: JsonStore = Depends(get_store)) -> dict:
    day = day or date.today()
    return {"day": day, "percent": HabitRegistry(store).daily_progress(day)}


@router.get("/habits/calendar/{year}/{month}")
async def habits_calendar(
    year: int, month: int, store: JsonStore = Depends(get_store)
) -> list[DaySummary]:
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Month must be between 1 and 12")
    return HabitRegistry(store).month_overview(year, month)


@router.post("/habits/{habit_id}/toggle")
async def toggle_habit(
    habit_id: str, body: ToggleRequest | None = None, store: JsonStore = Depends(get_store)
) -> ToggleResult:
    today = date.today()
    day = body.day if body and body.day else today
    with user_errors():
        result = HabitRegistry(store).toggle_completion(habit_id, day, load_stats(store), today)
    _commit(store, result.outcome)
    return result


@router.get("/habits/{habit_id}/reminder.ics")
async def habit_reminder(habit_id: str, store: JsonStore = Depends(get_store)) -> Response:
    with user_errors():
        habit = HabitRegistry(store).get(habit_id)
    return Response(
        content=reminder_event(habit),
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{habit.id}_reminder.ics"'},
    )


@router.post("/habits/{habit_id}/delete-request")
async def request_habit_removal(
    habit_id: str,
    store: JsonStore = Depends(get_store),
    gate: ConfirmationGate = Depends(get_gate),
) -> PendingAction:
    with user_errors():
        return HabitRegistry(store).request_removal(habit_id, gate)


# Journal

def _archive(store: JsonStore) -> JournalArchive:
    settings = get_settings()
    return JournalArchive(store, settings.image_max_dimension, settings.image_quality)


@router.get("/journal")
async def list_journal(store: JsonStore = Depends(get_store)) -> list[JournalEntry]:
    return _archive(store).entries()


@router.post("/journal/images")
async def stage_journal_image(file: UploadFile, store: JsonStore = Depends(get_store)) -> StagedImage:
    """Compress one photo for a draft. The draft itself is held by the shell."""
    draft = JournalDraft()
    with user_errors():
        image = await _archive(store).stage_image(draft, await file.read())
    return StagedImage(image=image)


@router.post("/journal", status_code=201)
async def create_journal_entry(
    body: NewJournalEntry, store: JsonStore = Depends(get_store)
) -> JournalEntry:
    draft = JournalDraft(content=body.content, mood=body.mood, images=body.images)
    with user_errors():
        return _archive(store).save_entry(draft)


@router.post("/journal/{entry_id}/delete-request")
async def request_journal_deletion(
    entry_id: str,
    store: JsonStore = Depends(get_store),
    gate: ConfirmationGate = Depends(get_gate),
) -> PendingAction:
    with user_errors():
        return _archive(store).request_deletion(entry_id, gate)


# English articles

@router.get("/articles")
async def list_articles(store: JsonStore = Depends(get_store)) -> list[EnglishArticle]:
    return ArticleLibrary(store).articles()


@router.post("/articles", status_code=201)
async def create_article(body: NewArticle, store: JsonStore = Depends(get_store)) -> EnglishArticle:
    with user_errors():
        return ArticleLibrary(store).add_article(body.title, body.content)


@router.post("/articles/fetch", status_code=201)
async def fetch_article(
    body: FetchRequest | None = None,
    store: JsonStore = Depends(get_store),
    fetcher: ArticleFetcher = Depends(get_fetcher),
) -> EnglishArticle:
    fetched = await fetcher.fetch(body.topic if body else "general")
    return ArticleLibrary(store).add_fetched(fetched)


@router.post("/articles/{article_id}/recite")
async def recite_article(article_id: str, store: JsonStore = Depends(get_store)) -> RecitationResult:
    with user_errors():
        result = ArticleLibrary(store).recite(article_id, load_stats(store))
    _commit(store, result.outcome)
    return result


@router.get("/articles/{article_id}/tokens")
async def article_tokens(article_id: str, store: JsonStore = Depends(get_store)) -> list[Token]:
    with user_errors():
        return ArticleLibrary(store).tokens(article_id)


@router.post("/articles/{article_id}/delete-request")
async def request_article_deletion(
    article_id: str,
    store: JsonStore = Depends(get_store),
    gate: ConfirmationGate = Depends(get_gate),
) -> PendingAction:
    with user_errors():
        return ArticleLibrary(store).request_deletion(article_id, gate)


# Confirmations

@router.get("/confirmations")
async def list_confirmations(gate: ConfirmationGate = Depends(get_gate)) -> list[PendingAction]:
    return gate.pending()


@router.post("/confirmations/{token}")
async def confirm_action(token: str, gate: ConfirmationGate = Depends(get_gate)) -> PendingAction:
    with user_errors():
        return gate.confirm(token)


@router.delete("/confirmations/{token}")
async def cancel_action(token: str, gate: ConfirmationGate = Depends(get_gate)) -> PendingAction:
    with user_errors():
        return gate.cancel(token)

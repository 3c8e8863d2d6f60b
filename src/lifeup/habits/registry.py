"""Habit registry: tracked habits, completion calendar and streaks."""

import calendar
from collections.abc import Iterable
from datetime import date, timedelta

import structlog
from pydantic import TypeAdapter

from lifeup.confirmation import ConfirmationGate, PendingAction
from lifeup.errors import NotFound, ValidationRejected
from lifeup.models.base import CamelModel
from lifeup.models.habit import DEFAULT_COLOR, DEFAULT_ICON, Habit, seed_habits
from lifeup.models.stats import UserStats
from lifeup.progression.engine import RewardOutcome, check_habit, uncheck_habit
from lifeup.storage.store import Collection, JsonStore

logger = structlog.get_logger()

_habits_adapter = TypeAdapter(list[Habit])


def compute_streak(completed: Iterable[date], today: date) -> int:
    """Count consecutive completed days ending today.

    If today is not completed yet, the run ending yesterday is counted, so an
    unbroken streak does not read as zero before the day's check-in.
    """
    days = set(completed)
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


class ToggleResult(CamelModel):
    habit: Habit
    completed: bool
    outcome: RewardOutcome | None = None  # set only for today's toggles


class DaySummary(CamelModel):
    day: date
    in_month: bool
    completed_count: int
    all_done: bool


class HabitRegistry:
    """Owns the ``habits`` collection.

    Args:
        store: Persistent store.
    """

    def __init__(self, store: JsonStore):
        self.store = store

    def _load(self) -> list[Habit]:
        return self.store.load(
            Collection.HABITS,
            _habits_adapter,
            seed_habits,
            lambda habits: [h.to_document() for h in habits],
        )

    def _save(self, habits: list[Habit]) -> None:
        self.store.write(Collection.HABITS, [h.to_document() for h in habits])

    def list_habits(self, today: date | None = None) -> list[Habit]:
        """All habits, with streaks brought up to date for ``today``."""
        today = today or date.today()
        return [
            h.model_copy(update={"streak": compute_streak(h.completed_dates, today)})
            for h in self._load()
        ]

    def get(self, habit_id: str, today: date | None = None) -> Habit:
        for habit in self.list_habits(today):
            if habit.id == habit_id:
                return habit
        raise NotFound(f"Habit {habit_id} not found.")

    def add_habit(
        self,
        name: str,
        icon: str | None = None,
        color: str | None = None,
        reminder_time: str | None = None,
    ) -> Habit:
        name = name.strip()
        if not name:
            raise ValidationRejected("Please enter a habit name.")
        habit = Habit(
            name=name,
            icon=icon or DEFAULT_ICON,
            color=color or DEFAULT_COLOR,
            reminder_time=reminder_time,
        )
        habits = self._load()
        habits.append(habit)
        self._save(habits)
        logger.info("habit_added", habit_id=habit.id, name=name)
        return habit

    def toggle_completion(
        self,
        habit_id: str,
        day: date,
        stats: UserStats,
        today: date | None = None,
    ) -> ToggleResult:
        """Flip whether ``habit_id`` was completed on ``day``.

        Only a toggle of today's date is rewarded (or un-rewarded). Other days
        change the completion calendar alone.
        """
        today = today or date.today()
        habits = self._load()
        for i, habit in enumerate(habits):
            if habit.id == habit_id:
                break
        else:
            raise NotFound(f"Habit {habit_id} not found.")

        was_completed = habit.is_completed_on(day)
        if was_completed:
            completed_dates = [d for d in habit.completed_dates if d != day]
        else:
            completed_dates = [*habit.completed_dates, day]

        updated = habit.model_copy(
            update={
                "completed_dates": completed_dates,
                "streak": compute_streak(completed_dates, today),
            }
        )
        habits[i] = updated
        self._save(habits)

        outcome = None
        if day == today:
            outcome = uncheck_habit(stats) if was_completed else check_habit(stats)
        logger.info(
            "habit_toggled",
            habit_id=habit_id,
            day=day.isoformat(),
            completed=not was_completed,
            streak=updated.streak,
        )
        return ToggleResult(habit=updated, completed=not was_completed, outcome=outcome)

    def request_removal(self, habit_id: str, gate: ConfirmationGate) -> PendingAction:
        habit = self.get(habit_id)
        return gate.request(
            "habit",
            habit_id,
            f'Delete habit "{habit.name}"? This cannot be undone.',
            lambda: self.remove_habit(habit_id),
        )

    def remove_habit(self, habit_id: str) -> None:
        """Delete a habit permanently. Callers go through ``request_removal``."""
        habits = self._load()
        remaining = [h for h in habits if h.id != habit_id]
        if len(remaining) == len(habits):
            raise NotFound(f"Habit {habit_id} not found.")
        self._save(remaining)
        logger.info("habit_removed", habit_id=habit_id)

    def daily_progress(self, day: date) -> float:
        """Percentage of habits completed on ``day``."""
        habits = self._load()
        if not habits:
            return 0.0
        done = sum(1 for h in habits if h.is_completed_on(day))
        return done / len(habits) * 100

    def month_overview(self, year: int, month: int) -> list[DaySummary]:
        """Completion counts for a Monday-first calendar grid of the month."""
        habits = self._load()
        summaries = []
        for day in calendar.Calendar(firstweekday=calendar.MONDAY).itermonthdates(year, month):
            count = sum(1 for h in habits if h.is_completed_on(day))
            summaries.append(
                DaySummary(
                    day=day,
                    in_month=day.month == month,
                    completed_count=count,
                    all_done=bool(habits) and count == len(habits),
                )
            )
        return summaries

"""Progression engine: experience, levels, coins and reward cooldowns.

Every function takes the current ``UserStats`` and returns a new value;
nothing here reads or writes storage. Cooldowns that belong to another
entity (per-article recitation) are checked by that entity's owner.
"""

import random
from datetime import date
from enum import StrEnum

import structlog
from pydantic import ConfigDict

from lifeup.errors import InsufficientCoins
from lifeup.models.base import CamelModel
from lifeup.models.stats import UserStats

logger = structlog.get_logger()

MYSTERY_BOX_PRICE = 50
MYSTERY_BOX_XP_RANGE = (20, 120)  # half-open

SIDE_QUESTS = [
    "Drink a glass of warm water, slowly",
    "Tidy your photo album and delete 3 bad shots",
    "Take one minute of deep breaths",
    "Send an old friend a sticker",
    "Look out of the window at something far away",
    "Clear up your desk",
    "Listen to your favourite song",
    "Do 10 jumping jacks",
    "Give yourself a compliment",
]


class RewardAction(StrEnum):
    HABIT_CHECK = "habit_check"
    HABIT_UNCHECK = "habit_uncheck"
    SIDE_QUEST = "side_quest"
    RECITATION = "recitation"
    MYSTERY_BOX = "mystery_box"


class Reward(CamelModel):
    """Stat deltas for one action."""

    model_config = ConfigDict(frozen=True)

    action: RewardAction
    xp_delta: int
    coins_delta: int


class RewardOutcome(CamelModel):
    """Result of a rewarded action as reported to the shell."""

    stats: UserStats
    rewarded: bool
    xp_gained: int = 0
    coins_gained: int = 0
    message: str = ""


HABIT_CHECK = Reward(action=RewardAction.HABIT_CHECK, xp_delta=20, coins_delta=10)
HABIT_UNCHECK = Reward(action=RewardAction.HABIT_UNCHECK, xp_delta=-20, coins_delta=0)
SIDE_QUEST = Reward(action=RewardAction.SIDE_QUEST, xp_delta=30, coins_delta=15)
RECITATION = Reward(action=RewardAction.RECITATION, xp_delta=50, coins_delta=20)


def apply_reward(stats: UserStats, reward: Reward) -> UserStats:
    """Apply a reward's deltas. XP and coins are floored at zero."""
    updated = stats.model_copy(
        update={
            "xp": max(0, stats.xp + reward.xp_delta),
            "coins": max(0, stats.coins + reward.coins_delta),
        }
    )
    logger.info(
        "reward_applied",
        action=reward.action,
        xp=updated.xp,
        coins=updated.coins,
        level=updated.level,
    )
    return updated


def _outcome(before: UserStats, after: UserStats, message: str) -> RewardOutcome:
    return RewardOutcome(
        stats=after,
        rewarded=True,
        xp_gained=after.xp - before.xp,
        coins_gained=after.coins - before.coins,
        message=message,
    )


def check_habit(stats: UserStats) -> RewardOutcome:
    return _outcome(stats, apply_reward(stats, HABIT_CHECK), "Keep it up!")


def uncheck_habit(stats: UserStats) -> RewardOutcome:
    return _outcome(stats, apply_reward(stats, HABIT_UNCHECK), "")


def recite_article(stats: UserStats) -> RewardOutcome:
    return _outcome(stats, apply_reward(stats, RECITATION), "Recitation complete!")


def side_quest_for(day: date) -> str:
    """Quest of the day, chosen by a checksum of the ISO date string.

    The same day always yields the same quest, with no stored state.
    """
    checksum = sum(ord(c) for c in day.isoformat())
    return SIDE_QUESTS[checksum % len(SIDE_QUESTS)]


def side_quest_done(stats: UserStats, day: date) -> bool:
    return stats.last_side_quest_date == day


def complete_side_quest(stats: UserStats, today: date) -> RewardOutcome:
    """Claim the daily side quest; a second claim on the same day is a no-op."""
    if side_quest_done(stats, today):
        return RewardOutcome(stats=stats, rewarded=False)
    rewarded = apply_reward(stats, SIDE_QUEST).model_copy(
        update={"last_side_quest_date": today}
    )
    return _outcome(stats, rewarded, "Side quest complete!")


def buy_mystery_box(stats: UserStats, rng: random.Random | None = None) -> RewardOutcome:
    """Spend coins on a random amount of XP.

    Raises:
        InsufficientCoins: The balance is below the price. Stats are unchanged.
    """
    if stats.coins < MYSTERY_BOX_PRICE:
        raise InsufficientCoins(MYSTERY_BOX_PRICE, stats.coins)
    rng = rng or random.Random()
    xp = rng.randrange(*MYSTERY_BOX_XP_RANGE)
    reward = Reward(action=RewardAction.MYSTERY_BOX, xp_delta=xp, coins_delta=-MYSTERY_BOX_PRICE)
    return _outcome(stats, apply_reward(stats, reward), "Mystery box opened!")

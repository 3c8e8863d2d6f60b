"""Two-phase confirmation for destructive actions.

A registry registers the deletion it would perform and hands back a token.
Nothing happens until the shell confirms the token; cancelling (or never
answering) leaves all state untouched.
"""

import uuid
from collections.abc import Callable
from datetime import datetime, timedelta

import structlog
from pydantic import Field

from lifeup.errors import NotFound
from lifeup.models.base import CamelModel

logger = structlog.get_logger()

PENDING_MAX_AGE = timedelta(minutes=15)


class PendingAction(CamelModel):
    token: str = Field(default_factory=lambda: uuid.uuid4().hex)
    kind: str  # "habit" | "journal_entry" | "article"
    target_id: str
    prompt: str
    requested_at: datetime = Field(default_factory=datetime.now)


class ConfirmationGate:
    """Holds destructive actions until they are confirmed or cancelled.

    Requests left unanswered for longer than ``max_age`` are dropped.
    """

    def __init__(self, max_age: timedelta = PENDING_MAX_AGE):
        self.max_age = max_age
        self._pending: dict[str, tuple[PendingAction, Callable[[], None]]] = {}

    def _expire(self) -> None:
        cutoff = datetime.now() - self.max_age
        for token, (pending, _) in list(self._pending.items()):
            if pending.requested_at < cutoff:
                del self._pending[token]
                logger.info("confirmation_expired", kind=pending.kind, target_id=pending.target_id)

    def request(
        self, kind: str, target_id: str, prompt: str, action: Callable[[], None]
    ) -> PendingAction:
        self._expire()
        pending = PendingAction(kind=kind, target_id=target_id, prompt=prompt)
        self._pending[pending.token] = (pending, action)
        logger.info("confirmation_requested", kind=kind, target_id=target_id, token=pending.token)
        return pending

    def _pop(self, token: str) -> tuple[PendingAction, Callable[[], None]]:
        self._expire()
        try:
            return self._pending.pop(token)
        except KeyError:
            raise NotFound("This confirmation has expired or does not exist.") from None

    def confirm(self, token: str) -> PendingAction:
        """Run the held action."""
        pending, action = self._pop(token)
        action()
        logger.info("confirmation_accepted", kind=pending.kind, target_id=pending.target_id)
        return pending

    def cancel(self, token: str) -> PendingAction:
        pending, _ = self._pop(token)
        logger.info("confirmation_cancelled", kind=pending.kind, target_id=pending.target_id)
        return pending

    def pending(self) -> list[PendingAction]:
        self._expire()
        return [p for p, _ in self._pending.values()]

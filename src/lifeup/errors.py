"""Domain exceptions raised by the registries and the progression engine."""


class LifeUpError(Exception):
    """Base class for errors that carry a user-facing message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationRejected(LifeUpError):
    """Required input was missing or malformed. No state was changed."""


class InsufficientCoins(LifeUpError):
    """A purchase was attempted without enough coins. No state was changed."""

    def __init__(self, required: int, available: int):
        super().__init__(f"Not enough coins: {required} needed, {available} available.")
        self.required = required
        self.available = available


class NotFound(LifeUpError):
    """The referenced habit, entry, article or confirmation does not exist."""

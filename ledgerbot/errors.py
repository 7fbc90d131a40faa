"""Exception types shared across the resolution pipeline."""


class LedgerbotError(Exception):
    """Base class for errors raised by ledgerbot."""


class NotConnectedError(LedgerbotError):
    """The accounting source is unreachable.

    Surfaced to the user as guidance to connect and retry; never retried silently.
    """

    def __init__(self, message: str = "Accounting source is not connected") -> None:
        super().__init__(message)


class UpstreamUnderstandingError(LedgerbotError):
    """An understanding backend failed, timed out, or returned garbage."""

    def __init__(self, backend: str, message: str) -> None:
        self.backend = backend
        super().__init__(f"{backend}: {message}")


class InvalidSelectionError(LedgerbotError):
    """A continuation reply pointed outside the pending candidate list."""

    def __init__(self, selection: int, available: int) -> None:
        self.selection = selection
        self.available = available
        super().__init__(f"Selection {selection} is outside 1..{available}")

    @property
    def user_message(self) -> str:
        """Message shown to the user for this selection."""
        return (
            f"❌ Invalid selection. Please choose a number between 1 and {self.available}."
        )


class StoreError(LedgerbotError):
    """The replicated transaction store failed to answer a read."""

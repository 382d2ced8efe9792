"""Exception types raised and absorbed inside LexiDeck."""


class LexiDeckError(Exception):
    """Base class for all LexiDeck errors."""


class TextLookupFailure(LexiDeckError):
    """The definition provider could not produce a valid entry.

    Covers not-found terms, malformed responses and transport errors alike;
    the lookup orchestrator collapses all of them into one user-facing message.
    """

    def __init__(self, term: str, reason: str = ""):
        self.term = term
        self.reason = reason
        message = f"Lookup failed for '{term}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ImageUnavailable(LexiDeckError):
    """No illustration could be produced for a term."""


class PersistenceCorruption(LexiDeckError):
    """The persisted collection could not be read back."""

    def __init__(self, slot: str, reason: str):
        self.slot = slot
        self.reason = reason
        super().__init__(f"Stored collection '{slot}' is unreadable: {reason}")

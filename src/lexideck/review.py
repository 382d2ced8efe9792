"""Review sessions over the saved collection."""

import logging
import random
from typing import List, Optional, Sequence, TypeVar

from .core import Collection, FlashCard, ReviewPhase, ReviewSession, build_card

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random) -> List[T]:
    """Returns a uniformly random permutation of items, leaving items untouched.

    Args:
        items: The sequence to shuffle.
        rng: Source of randomness.

    Returns:
        A new list holding the same elements in shuffled order.
    """
    deck = list(items)
    for i in range(len(deck) - 1, 0, -1):
        j = rng.randrange(i + 1)
        deck[i], deck[j] = deck[j], deck[i]
    return deck


class ReviewEngine:
    """Drives a shuffle, flip, advance and finish flashcard session.

    The engine is empty until it receives a non-empty collection. Starting a
    session shuffles a snapshot of the collection into a deck; the same
    collection is reshuffled on restart. Commands that do not apply to the
    current phase are ignored.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """Initializes the ReviewEngine.

        Args:
            rng: Optional random generator, mainly for reproducible tests.
        """
        self._rng = rng or random.Random()
        self._source: Collection = ()
        self._session = ReviewSession()

    @property
    def session(self) -> ReviewSession:
        """The current session snapshot."""
        return self._session

    @property
    def phase(self) -> ReviewPhase:
        return self._session.phase

    @property
    def source(self) -> Collection:
        """The collection the current deck was shuffled from."""
        return self._source

    def start_session(self, collection: Collection) -> ReviewSession:
        """Builds a fresh session from a collection.

        Args:
            collection: The saved entries to review.

        Returns:
            The new session snapshot; empty if the collection is empty.
        """
        self._source = tuple(collection)
        if not self._source:
            self._session = ReviewSession()
        else:
            self._session = ReviewSession(
                deck=tuple(fisher_yates_shuffle(self._source, self._rng))
            )
        logger.debug("Started review session with %d cards", len(self._session.deck))
        return self._session

    def sync(self, collection: Collection) -> ReviewSession:
        """Rebuilds the session if the collection differs from the current source."""
        if tuple(collection) == self._source:
            return self._session
        logger.info("Collection changed; rebuilding review session")
        return self.start_session(collection)

    def flip(self) -> ReviewSession:
        if self.phase is not ReviewPhase.ACTIVE:
            logger.debug("Ignoring flip in %s phase", self.phase.value)
            return self._session
        self._session = self._session.model_copy(
            update={"is_flipped": not self._session.is_flipped}
        )
        return self._session

    def advance(self) -> ReviewSession:
        """Moves to the next card, or completes the session after the last one."""
        if self.phase is not ReviewPhase.ACTIVE:
            logger.debug("Ignoring advance in %s phase", self.phase.value)
            return self._session

        if self._session.position_index < len(self._session.deck) - 1:
            self._session = self._session.model_copy(
                update={
                    "position_index": self._session.position_index + 1,
                    "is_flipped": False,
                }
            )
        else:
            self._session = self._session.model_copy(update={"is_complete": True})
        return self._session

    def restart(self) -> ReviewSession:
        """Reshuffles the same collection and returns to the first card."""
        if self.phase is ReviewPhase.EMPTY:
            logger.debug("Ignoring restart with an empty collection")
            return self._session
        return self.start_session(self._source)

    def current_card(self) -> Optional[FlashCard]:
        if self.phase is not ReviewPhase.ACTIVE:
            return None
        return build_card(self._session.deck[self._session.position_index])

    def progress_label(self) -> str:
        session = self._session
        if session.phase is ReviewPhase.EMPTY:
            return "No favorites yet"
        if session.phase is ReviewPhase.COMPLETE:
            return f"You've reviewed {len(session.deck)} words."
        return f"Card {session.position_index + 1} of {len(session.deck)}"

"""Lookup orchestration: one search, two independent provider calls."""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from .ai import DefinitionProvider, IllustrationProvider
from .core import Collection, ImagePhase, LookupState, TextPhase, find_saved, normalize_term

if TYPE_CHECKING:
    from .database import EntryStore

logger = logging.getLogger(__name__)

TEXT_FAILURE_MESSAGE = (
    "We couldn't find that word. Please check the spelling or try another term."
)

Listener = Callable[[LookupState], None]


class LookupOrchestrator:
    """Coordinates the definition and illustration providers for user searches.

    Each search resets the state, then runs both provider calls concurrently.
    Results are applied only if they belong to the latest search; every search
    bumps a generation counter, and late results from an older generation are
    dropped. A failed definition makes the whole search failed. A failed or
    empty illustration only marks the image as unavailable.
    """

    def __init__(
        self,
        definition_provider: DefinitionProvider,
        illustration_provider: IllustrationProvider,
    ):
        self.definition_provider = definition_provider
        self.illustration_provider = illustration_provider
        self._state = LookupState()
        self._generation = 0
        self._listeners: List[Listener] = []

    @property
    def state(self) -> LookupState:
        """The current lookup state snapshot."""
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, listener: Listener) -> None:
        """Registers a callback receiving every new state snapshot."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def search(self, term: str) -> Optional[LookupState]:
        """Looks up a term with both providers.

        Blank input is ignored. Otherwise the state is reset before either
        request starts, and both requests run without waiting on each other.

        Args:
            term: The user's input.

        Returns:
            The final state of this search, or None if the input was blank or a
            newer search superseded this one before it finished.
        """
        term = normalize_term(term)
        if not term:
            logger.debug("Ignoring blank search input")
            return None

        self._generation += 1
        generation = self._generation
        logger.info("Searching '%s' (generation %d)", term, generation)
        self._set_state(
            LookupState(
                term=term,
                text_phase=TextPhase.LOADING,
                image_phase=ImagePhase.LOADING,
            )
        )

        await asyncio.gather(
            self._fetch_definition(generation, term),
            self._fetch_illustration(generation, term),
        )

        if generation != self._generation:
            return None
        return self._state

    async def _fetch_definition(self, generation: int, term: str) -> None:
        try:
            entry = await self.definition_provider.define(term)
        except Exception as e:
            logger.warning("Definition lookup for '%s' failed: %s", term, e)
            self._apply(
                generation,
                text_phase=TextPhase.FAILED,
                error_message=TEXT_FAILURE_MESSAGE,
            )
            return
        self._apply(generation, entry=entry, text_phase=TextPhase.READY)

    async def _fetch_illustration(self, generation: int, term: str) -> None:
        try:
            illustration_ref = await self.illustration_provider.illustrate(term)
        except Exception as e:
            logger.info("Illustration for '%s' unavailable: %s", term, e)
            illustration_ref = None

        if illustration_ref:
            self._apply(
                generation,
                illustration_ref=illustration_ref,
                image_phase=ImagePhase.READY,
            )
        else:
            self._apply(generation, image_phase=ImagePhase.UNAVAILABLE)

    def _apply(self, generation: int, **changes: Any) -> bool:
        if generation != self._generation:
            logger.debug(
                "Dropping stale result from generation %d (current %d)",
                generation,
                self._generation,
            )
            return False
        self._set_state(self._state.model_copy(update=changes))
        return True

    def _set_state(self, state: LookupState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Lookup listener %r failed", listener)

    def is_favorite(self, collection: Collection) -> bool:
        """Whether the currently displayed entry is in the given collection."""
        entry = self._state.entry
        return entry is not None and find_saved(collection, entry.term) is not None

    def toggle_favorite(
        self, store: "EntryStore", saved_at: Optional[int] = None
    ) -> Optional[bool]:
        """Saves or removes the currently displayed entry.

        The illustration resolved at this moment is saved with the entry.

        Args:
            store: The entry store to update.
            saved_at: Optional save timestamp in epoch milliseconds.

        Returns:
            None if no entry is displayed, True if the entry is now saved,
            False if it was removed.
        """
        entry = self._state.entry
        if entry is None:
            return None
        return store.toggle(entry, self._state.illustration_ref, saved_at)

"""Core data models for LexiDeck dictionary lookups and review decks."""

import logging
import time
from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

MAX_SYNONYMS = 5
BACK_MEANINGS = 2


def normalize_term(term: str) -> str:
    """Trims surrounding whitespace from a user-supplied term."""
    return term.strip()


def term_key(term: str) -> str:
    """Returns the identity key of a term; terms compare case-insensitively."""
    return normalize_term(term).casefold()


def now_millis() -> int:
    return int(time.time() * 1000)


class Meaning(BaseModel):
    """A single sense of a term.

    Attributes:
        part_of_speech: e.g. noun, verb, adjective.
        definition: A clear, academic definition.
    """

    part_of_speech: str = Field(..., alias="partOfSpeech")
    definition: str

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Example(BaseModel):
    """An illustrative sentence with its translation and a usage note.

    Attributes:
        sentence: An example sentence using the term.
        translation: The sentence translated into the learner's language.
        usage_note: Why this example was chosen (collocation, register, nuance).
    """

    sentence: str
    translation: str
    usage_note: str = Field(..., alias="usage")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class DictionaryEntry(BaseModel):
    """A structured dictionary result for one term.

    Field aliases match the JSON keys requested from the definition provider,
    so provider payloads validate directly into this model.

    Attributes:
        term: The word or phrase being defined.
        phonetic: IPA phonetic transcription.
        meanings: Ordered senses of the term; never empty.
        examples: Ordered example sentences.
        synonyms: Up to five synonyms.
        etymology: Brief origin of the term.
    """

    term: str = Field(..., alias="word", description="The word being defined")
    phonetic: str = Field(..., description="IPA phonetic transcription")
    meanings: Tuple[Meaning, ...] = Field(..., min_length=1)
    examples: Tuple[Example, ...]
    synonyms: Tuple[str, ...]
    etymology: str

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("synonyms")
    @classmethod
    def _limit_synonyms(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        return value[:MAX_SYNONYMS]


class SavedEntry(DictionaryEntry):
    """A dictionary entry the user added to their collection.

    Attributes:
        illustration_ref: The illustration resolved when the entry was saved, if any.
        saved_at_epoch_millis: When the entry was saved, in epoch milliseconds.
    """

    illustration_ref: Optional[str] = Field(default=None, alias="imageUrl")
    saved_at_epoch_millis: int = Field(..., alias="savedAt")

    @classmethod
    def from_entry(
        cls,
        entry: DictionaryEntry,
        illustration_ref: Optional[str],
        saved_at: Optional[int] = None,
    ) -> "SavedEntry":
        """Copies an entry together with whatever illustration is known right now."""
        return cls(
            **entry.model_dump(include=set(DictionaryEntry.model_fields)),
            illustration_ref=illustration_ref,
            saved_at_epoch_millis=now_millis() if saved_at is None else saved_at,
        )


# Newest-first, at most one entry per term key.
Collection = Tuple[SavedEntry, ...]


def find_saved(collection: Collection, term: str) -> Optional[SavedEntry]:
    key = term_key(term)
    for saved in collection:
        if term_key(saved.term) == key:
            return saved
    return None


def toggle_entry(
    collection: Collection,
    entry: DictionaryEntry,
    illustration_ref: Optional[str],
    saved_at: Optional[int] = None,
) -> Collection:
    """Removes the entry's term from the collection, or prepends a new SavedEntry.

    Args:
        collection: The current collection; it is not modified.
        entry: The entry being toggled.
        illustration_ref: The illustration to store if the entry gets saved.
        saved_at: Optional save timestamp in epoch milliseconds.

    Returns:
        A brand-new collection value.
    """
    key = term_key(entry.term)
    if find_saved(collection, entry.term) is not None:
        return tuple(saved for saved in collection if term_key(saved.term) != key)
    return (SavedEntry.from_entry(entry, illustration_ref, saved_at),) + tuple(collection)


class StoredCollection(BaseModel):
    """Versioned on-disk record of the collection."""

    version: Literal[1] = 1
    entries: Tuple[SavedEntry, ...] = ()

    model_config = ConfigDict(frozen=True)

    @field_validator("entries")
    @classmethod
    def _drop_duplicate_terms(cls, value: Tuple[SavedEntry, ...]) -> Tuple[SavedEntry, ...]:
        seen = set()
        unique = []
        for saved in value:
            key = term_key(saved.term)
            if key in seen:
                logger.warning("Dropping duplicate stored entry for '%s'", saved.term)
                continue
            seen.add(key)
            unique.append(saved)
        return tuple(unique)


class TextPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ImagePhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class LookupState(BaseModel):
    """Snapshot of one search as seen by the UI.

    Attributes:
        term: The normalized term being searched.
        entry: The dictionary entry, once the text request succeeded.
        illustration_ref: The illustration, once the image request succeeded.
        text_phase: Progress of the text request.
        image_phase: Progress of the image request.
        error_message: User-facing message when the text request failed.
    """

    term: str = ""
    entry: Optional[DictionaryEntry] = None
    illustration_ref: Optional[str] = None
    text_phase: TextPhase = TextPhase.IDLE
    image_phase: ImagePhase = ImagePhase.IDLE
    error_message: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def failed(self) -> bool:
        return self.text_phase is TextPhase.FAILED

    @property
    def settled(self) -> bool:
        """True once neither request is still loading."""
        return (
            self.text_phase is not TextPhase.LOADING
            and self.image_phase is not ImagePhase.LOADING
        )


class ReviewPhase(str, Enum):
    EMPTY = "empty"
    ACTIVE = "active"
    COMPLETE = "complete"


class ReviewSession(BaseModel):
    """Snapshot of a review session.

    Attributes:
        deck: Shuffled copy of the collection.
        position_index: Index of the card currently shown.
        is_flipped: Whether the back of the current card is shown.
        is_complete: Whether the user advanced past the last card.
    """

    deck: Tuple[SavedEntry, ...] = ()
    position_index: int = 0
    is_flipped: bool = False
    is_complete: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def phase(self) -> ReviewPhase:
        if not self.deck:
            return ReviewPhase.EMPTY
        if self.is_complete:
            return ReviewPhase.COMPLETE
        return ReviewPhase.ACTIVE


class CardFront(BaseModel):
    term: str
    phonetic: str

    model_config = ConfigDict(frozen=True)


class CardBack(BaseModel):
    meanings: Tuple[Meaning, ...]
    illustration_ref: Optional[str] = None
    example: Optional[Example] = None

    model_config = ConfigDict(frozen=True)


class FlashCard(BaseModel):
    front: CardFront
    back: CardBack

    model_config = ConfigDict(frozen=True)


def build_card(saved: SavedEntry) -> FlashCard:
    """Derives the flashcard faces for a saved entry.

    The front shows the term and its phonetic; the back shows the top two
    meanings, the illustration if one was saved and the first example only.
    """
    return FlashCard(
        front=CardFront(term=saved.term, phonetic=saved.phonetic),
        back=CardBack(
            meanings=saved.meanings[:BACK_MEANINGS],
            illustration_ref=saved.illustration_ref,
            example=saved.examples[0] if saved.examples else None,
        ),
    )

"""LexiDeck: AI dictionary lookups with illustrations and a flashcard review deck."""

__version__ = "0.1.0"

from .core import (
    DictionaryEntry,
    Example,
    ImagePhase,
    LookupState,
    Meaning,
    ReviewPhase,
    ReviewSession,
    SavedEntry,
    TextPhase,
)
from .database import EntryStore
from .ai import (
    DefinitionProvider,
    IllustrationProvider,
    GeminiDefinitionProvider,
    GeminiIllustrationProvider,
    OpenAIDefinitionProvider,
    OpenAIIllustrationProvider,
    ProviderFactory,
)
from .lookup import LookupOrchestrator
from .review import ReviewEngine

__all__ = [
    "DictionaryEntry",
    "Example",
    "ImagePhase",
    "LookupState",
    "Meaning",
    "ReviewPhase",
    "ReviewSession",
    "SavedEntry",
    "TextPhase",
    "EntryStore",
    "DefinitionProvider",
    "IllustrationProvider",
    "GeminiDefinitionProvider",
    "GeminiIllustrationProvider",
    "OpenAIDefinitionProvider",
    "OpenAIIllustrationProvider",
    "ProviderFactory",
    "LookupOrchestrator",
    "ReviewEngine",
]

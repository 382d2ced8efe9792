"""Runtime settings and logging setup for LexiDeck."""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_COLLECTION_SLOT = "lexideck_favorites"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    """Settings for providers, storage and speech.

    Attributes:
        ai_service: Provider family, "gemini" or "openai".
        api_key: API key for the selected provider.
        text_model: Optional override for the definition model.
        image_model: Optional override for the illustration model.
        db_path: DuckDB database path; ":memory:" keeps the collection in memory.
        collection_slot: Name of the slot holding the saved collection.
        translation_language: Language example sentences are translated into.
        speech_lang: gTTS language code.
        audio_dir: Directory for synthesized speech files.
        log_level: Logging level name.
    """

    ai_service: str = "gemini"
    api_key: str = ""
    text_model: Optional[str] = None
    image_model: Optional[str] = None
    db_path: str = ":memory:"
    collection_slot: str = DEFAULT_COLLECTION_SLOT
    translation_language: str = "Chinese"
    speech_lang: str = "en"
    audio_dir: Path = Path(tempfile.gettempdir()) / "lexideck_audio"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Builds settings from environment variables, reading a .env file first.

        The provider defaults to Gemini when GEMINI_API_KEY is set and to
        OpenAI otherwise, unless LEXIDECK_AI_SERVICE names one explicitly.
        """
        if dotenv:
            load_dotenv()

        gemini_api_key = os.getenv("GEMINI_API_KEY", "")
        default_service = "gemini" if gemini_api_key else "openai"
        ai_service = os.getenv("LEXIDECK_AI_SERVICE", default_service).strip().lower()
        api_key = os.getenv(f"{ai_service.upper()}_API_KEY", "")

        return cls(
            ai_service=ai_service,
            api_key=api_key,
            text_model=os.getenv("LEXIDECK_TEXT_MODEL") or None,
            image_model=os.getenv("LEXIDECK_IMAGE_MODEL") or None,
            db_path=os.getenv("LEXIDECK_DB_PATH", ":memory:"),
            collection_slot=os.getenv("LEXIDECK_COLLECTION_SLOT", DEFAULT_COLLECTION_SLOT),
            translation_language=os.getenv("LEXIDECK_TRANSLATION_LANGUAGE", "Chinese"),
            speech_lang=os.getenv("LEXIDECK_SPEECH_LANG", "en"),
            audio_dir=Path(
                os.getenv(
                    "LEXIDECK_AUDIO_DIR",
                    str(Path(tempfile.gettempdir()) / "lexideck_audio"),
                )
            ),
            log_level=os.getenv("LEXIDECK_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Installs a basic handler unless the application already configured logging."""
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("lexideck").setLevel(level)

"AI provider module for dictionary entries and illustrations."

import base64
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import google.generativeai as genai
import openai
from pydantic import ValidationError

from lexideck.core import DictionaryEntry
from lexideck.errors import ImageUnavailable, TextLookupFailure

if TYPE_CHECKING:
    from lexideck.config import Settings

logger = logging.getLogger(__name__)

GEMINI_TEXT_MODELS = ["gemini-2.5-flash", "gemini-2.0-flash"]
GEMINI_IMAGE_MODELS = ["gemini-2.5-flash-image"]
OPENAI_TEXT_MODELS = ["gpt-4o-mini"]
OPENAI_IMAGE_MODELS = ["gpt-image-1"]


def _create_definition_prompt(term: str, translation_language: str) -> str:
    """Creates the prompt asking for a structured dictionary entry.

    Args:
        term: The word or phrase to define.
        translation_language: Language the example sentences are translated into.

    Returns:
        The formatted prompt string.
    """
    return f"""Provide a detailed dictionary entry for the English word or phrase: "{term}".
Target audience: University students.

Requirements:
1. Definitions: Academic and clear.
2. Examples: Select 3 distinct examples based on the word's part of speech and common collocations.
   - Ensure the examples show *different* shades of meaning or contexts (e.g., one formal, one figurative, one common phrase).
   - Provide a "usage" note for each example explaining *why* this example was chosen (e.g., specific preposition used, tone, or field of study).
   - Translate each example sentence into {translation_language}.
3. Synonyms: 3-5 high-level synonyms.
4. Etymology: Brief and interesting origin.

Respond with a single JSON object with exactly these keys:
"word" (string), "phonetic" (IPA transcription, string),
"meanings" (list of objects with "partOfSpeech" and "definition"),
"examples" (list of objects with "sentence", "translation" and "usage"),
"synonyms" (list of strings), "etymology" (string).
If "{term}" is not a real English word or phrase, respond with {{"error": "not found"}}."""


def _create_illustration_prompt(term: str) -> str:
    return (
        "Create a high-quality, educational, minimalist illustration representing "
        f'the concept of the word: "{term}".\n'
        "Style: Vector art, flat design, clean lines, suitable for a dictionary app. "
        "No text inside the image."
    )


def _strip_code_fence(text: str) -> str:
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_entry(term: str, payload: Optional[str]) -> DictionaryEntry:
    """Validates a provider payload into a DictionaryEntry.

    Args:
        term: The term that was looked up, used for error reporting.
        payload: Raw JSON text returned by the provider.

    Returns:
        The validated entry.

    Raises:
        TextLookupFailure: If the payload is empty, not JSON, or violates the schema.
    """
    if not payload or not payload.strip():
        raise TextLookupFailure(term, "empty response")

    text = _strip_code_fence(payload.strip())
    try:
        return DictionaryEntry.model_validate_json(text)
    except ValidationError as e:
        raise TextLookupFailure(
            term, f"malformed response ({e.error_count()} validation errors)"
        ) from e


def _to_data_uri(mime_type: str, data: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def _get_openai_client(api_key: str) -> openai.AsyncOpenAI:
    return openai.AsyncOpenAI(api_key=api_key)


def _get_gemini_client(api_key: str, model_name: str) -> genai.GenerativeModel:
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(model_name)


class DefinitionProvider(ABC):
    """Abstract base class for services that produce dictionary entries."""

    @abstractmethod
    async def define(self, term: str) -> DictionaryEntry:
        """Looks up a term.

        Args:
            term: The normalized term to define.

        Returns:
            A validated dictionary entry.

        Raises:
            TextLookupFailure: If no valid entry could be produced.
        """


class IllustrationProvider(ABC):
    """Abstract base class for services that produce illustrations."""

    @abstractmethod
    async def illustrate(self, term: str) -> Optional[str]:
        """Generates an illustration for a term.

        Args:
            term: The normalized term to illustrate.

        Returns:
            An image reference (a data URI), or None if no image was produced.
        """


class GeminiDefinitionProvider(DefinitionProvider):
    """Google Gemini definition provider using JSON-mode generation."""

    def __init__(
        self,
        api_key: str,
        model_names: Optional[Sequence[str]] = None,
        translation_language: str = "Chinese",
    ):
        self.api_key = api_key
        self.model_names: List[str] = list(model_names or GEMINI_TEXT_MODELS)
        self.translation_language = translation_language
        self.client: Optional[genai.GenerativeModel] = None

    async def define(self, term: str) -> DictionaryEntry:
        prompt = _create_definition_prompt(term, self.translation_language)

        last_error: Optional[Exception] = None
        for model_name in self.model_names:
            try:
                logger.info("Requesting definition of '%s' from Gemini model %s", term, model_name)
                self.client = _get_gemini_client(self.api_key, model_name)
                response = await self.client.generate_content_async(
                    prompt,
                    generation_config={
                        "response_mime_type": "application/json",
                        "temperature": 0.4,
                    },
                )
                return parse_entry(term, response.text)
            except Exception as e:
                logger.warning("Gemini model %s failed to define '%s': %s", model_name, term, e)
                last_error = e
                continue

        raise TextLookupFailure(term, str(last_error) if last_error else "no models configured")


class GeminiIllustrationProvider(IllustrationProvider):
    """Google Gemini illustration provider; returns the first inline image as a data URI."""

    def __init__(self, api_key: str, model_names: Optional[Sequence[str]] = None):
        self.api_key = api_key
        self.model_names: List[str] = list(model_names or GEMINI_IMAGE_MODELS)
        self.client: Optional[genai.GenerativeModel] = None

    async def illustrate(self, term: str) -> Optional[str]:
        prompt = _create_illustration_prompt(term)

        for model_name in self.model_names:
            try:
                logger.info("Requesting illustration of '%s' from Gemini model %s", term, model_name)
                self.client = _get_gemini_client(self.api_key, model_name)
                response = await self.client.generate_content_async(prompt)
            except Exception as e:
                logger.warning("Gemini model %s failed to illustrate '%s': %s", model_name, term, e)
                continue

            for candidate in response.candidates[:1]:
                for part in candidate.content.parts:
                    inline_data = getattr(part, "inline_data", None)
                    if inline_data is not None and inline_data.data:
                        return _to_data_uri(inline_data.mime_type, inline_data.data)
            return None

        raise ImageUnavailable(f"No Gemini image model produced an illustration of '{term}'")


class OpenAIDefinitionProvider(DefinitionProvider):
    """OpenAI definition provider using JSON-object chat completions."""

    def __init__(
        self,
        api_key: str,
        model_names: Optional[Sequence[str]] = None,
        translation_language: str = "Chinese",
    ):
        self.api_key = api_key
        self.model_names: List[str] = list(model_names or OPENAI_TEXT_MODELS)
        self.translation_language = translation_language
        self.client: Optional[openai.AsyncOpenAI] = None

    async def define(self, term: str) -> DictionaryEntry:
        if self.client is None:
            self.client = _get_openai_client(self.api_key)
        prompt = _create_definition_prompt(term, self.translation_language)

        last_error: Optional[Exception] = None
        for model_name in self.model_names:
            try:
                logger.info("Requesting definition of '%s' from OpenAI model %s", term, model_name)
                response = await self.client.chat.completions.create(
                    model=model_name,
                    messages=[
                        {
                            "role": "system",
                            "content": "You are a lexicographer writing entries for an English learner's dictionary. Reply with JSON only.",
                        },
                        {"role": "user", "content": prompt},
                    ],
                    response_format={"type": "json_object"},
                    temperature=0.4,
                )
                return parse_entry(term, response.choices[0].message.content)
            except Exception as e:
                logger.warning("OpenAI model %s failed to define '%s': %s", model_name, term, e)
                last_error = e
                continue

        raise TextLookupFailure(term, str(last_error) if last_error else "no models configured")


class OpenAIIllustrationProvider(IllustrationProvider):
    """OpenAI image provider; base64 output becomes a PNG data URI."""

    def __init__(self, api_key: str, model_names: Optional[Sequence[str]] = None):
        self.api_key = api_key
        self.model_names: List[str] = list(model_names or OPENAI_IMAGE_MODELS)
        self.client: Optional[openai.AsyncOpenAI] = None

    async def illustrate(self, term: str) -> Optional[str]:
        if self.client is None:
            self.client = _get_openai_client(self.api_key)
        prompt = _create_illustration_prompt(term)

        for model_name in self.model_names:
            try:
                logger.info("Requesting illustration of '%s' from OpenAI model %s", term, model_name)
                response = await self.client.images.generate(
                    model=model_name, prompt=prompt, size="1024x1024", n=1
                )
            except Exception as e:
                logger.warning("OpenAI model %s failed to illustrate '%s': %s", model_name, term, e)
                continue

            if response.data and response.data[0].b64_json:
                return _to_data_uri("image/png", base64.b64decode(response.data[0].b64_json))
            return None

        raise ImageUnavailable(f"No OpenAI image model produced an illustration of '{term}'")


class ProviderFactory:
    """Factory for creating definition and illustration providers."""

    @staticmethod
    def create_definition_provider(
        service_type: str,
        api_key: str,
        model_name: Optional[str] = None,
        translation_language: str = "Chinese",
    ) -> DefinitionProvider:
        """Creates a definition provider of the specified type.

        Args:
            service_type: "openai" or "gemini".
            api_key: API key for the service.
            model_name: Optional model overriding the service's default list.
            translation_language: Language for example translations.

        Returns:
            A concrete DefinitionProvider.

        Raises:
            ValueError: If an unknown service type is provided.
        """
        models = [model_name] if model_name else None
        if service_type.lower() == "openai":
            return OpenAIDefinitionProvider(api_key, models, translation_language)
        elif service_type.lower() == "gemini":
            return GeminiDefinitionProvider(api_key, models, translation_language)
        else:
            raise ValueError(f"Unknown AI service type: {service_type}")

    @staticmethod
    def create_illustration_provider(
        service_type: str, api_key: str, model_name: Optional[str] = None
    ) -> IllustrationProvider:
        """Creates an illustration provider of the specified type.

        Raises:
            ValueError: If an unknown service type is provided.
        """
        models = [model_name] if model_name else None
        if service_type.lower() == "openai":
            return OpenAIIllustrationProvider(api_key, models)
        elif service_type.lower() == "gemini":
            return GeminiIllustrationProvider(api_key, models)
        else:
            raise ValueError(f"Unknown AI service type: {service_type}")

    @staticmethod
    def from_settings(settings: "Settings") -> Tuple[DefinitionProvider, IllustrationProvider]:
        return (
            ProviderFactory.create_definition_provider(
                settings.ai_service,
                settings.api_key,
                settings.text_model,
                settings.translation_language,
            ),
            ProviderFactory.create_illustration_provider(
                settings.ai_service, settings.api_key, settings.image_model
            ),
        )

    @staticmethod
    def get_available_services() -> List[str]:
        """Returns a list of supported AI service types."""
        return ["openai", "gemini"]

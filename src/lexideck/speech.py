"""Text-to-speech effects for terms and example sentences."""

import asyncio
import hashlib
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from gtts import gTTS

logger = logging.getLogger(__name__)


class SpeechEffect(ABC):
    """Fire-and-forget speech output."""

    @abstractmethod
    def speak(self, text: str) -> None:
        """Stops any utterance in progress and starts speaking text."""


class NullSpeech(SpeechEffect):
    def speak(self, text: str) -> None:
        logger.debug("Speech disabled; not speaking %r", text)


class GTTSSpeech(SpeechEffect):
    """Speech using Google Text-to-Speech (gTTS library).

    Synthesis runs on a worker thread. Each utterance is written to an MP3
    file in audio_dir, named after a hash of language and text so repeated
    utterances reuse the file. A newer utterance cancels the pending one.
    """

    def __init__(self, audio_dir: Union[str, Path], lang: str = "en"):
        self.audio_dir = Path(audio_dir)
        self.lang = lang
        self.last_audio_path: Optional[Path] = None
        self._task: Optional["asyncio.Task[Optional[Path]]"] = None

    def audio_path(self, text: str) -> Path:
        digest = hashlib.sha1(f"{self.lang}:{text}".encode("utf-8")).hexdigest()[:16]
        return self.audio_dir / f"{digest}.mp3"

    def speak(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        self.cancel()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop; render in place.
            self._render_blocking(text)
            return
        self._task = loop.create_task(self._render(text))

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> Optional[Path]:
        """Waits for the pending utterance and returns its audio file, if any."""
        task = self._task
        if task is None:
            return self.last_audio_path
        await asyncio.wait({task})
        if task.cancelled():
            return None
        return task.result()

    async def _render(self, text: str) -> Optional[Path]:
        return await asyncio.to_thread(self._render_blocking, text)

    def _render_blocking(self, text: str) -> Optional[Path]:
        path = self.audio_path(text)
        if not (path.exists() and path.stat().st_size > 0):
            partial = path.with_suffix(".part")
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                gTTS(text=text, lang=self.lang).save(str(partial))
                os.replace(partial, path)
            except Exception as e:
                partial.unlink(missing_ok=True)
                logger.warning("Speech synthesis failed for %r: %s", text, e)
                return None
        self.last_audio_path = path
        return path

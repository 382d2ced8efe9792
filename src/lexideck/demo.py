"""Demo interface for LexiDeck using Gradio."""

import asyncio
import html
import logging
import random
from typing import AsyncIterator, Optional, Tuple

import gradio as gr

from .ai import DefinitionProvider, IllustrationProvider, ProviderFactory
from .config import Settings, configure_logging
from .core import DictionaryEntry, FlashCard, ImagePhase, LookupState, ReviewPhase, TextPhase
from .database import EntryStore
from .lookup import LookupOrchestrator
from .review import ReviewEngine
from .speech import GTTSSpeech

logger = logging.getLogger(__name__)

LookupView = Tuple[str, str, str]
ReviewView = Tuple[str, str, str]


def _image_html(illustration_ref: Optional[str], alt: str = "") -> str:
    if not illustration_ref:
        return ""
    return (
        f'<img src="{html.escape(illustration_ref, quote=True)}" '
        f'alt="{html.escape(alt, quote=True)}" style="max-width:320px;border-radius:12px;" />'
    )


def entry_markdown(entry: DictionaryEntry) -> str:
    """Formats a full dictionary entry as Markdown."""
    lines = [f"## {entry.term}", f"`/{entry.phonetic}/`", ""]
    for meaning in entry.meanings:
        lines.append(f"- **{meaning.part_of_speech}** {meaning.definition}")
    if entry.examples:
        lines += ["", "### Examples"]
        for example in entry.examples:
            lines.append(f"> *{example.sentence}*  ")
            lines.append(f"> {example.translation}  ")
            lines.append(f"> _{example.usage_note}_")
            lines.append("")
    if entry.synonyms:
        lines += ["### Synonyms", ", ".join(entry.synonyms), ""]
    lines += ["### Etymology", entry.etymology]
    return "\n".join(lines)


def render_lookup(state: LookupState, is_favorite: bool) -> LookupView:
    """Renders a lookup state as (markdown, image html, favorite button label)."""
    favorite_label = "★ Saved" if is_favorite else "☆ Save to deck"

    if state.text_phase is TextPhase.IDLE:
        return "AI-powered definitions, visuals, and smart examples for students.", "", favorite_label
    if state.text_phase is TextPhase.FAILED:
        return f"**{state.error_message}**", "", favorite_label
    if state.text_phase is TextPhase.LOADING:
        return f"Looking up *{state.term}*…", "", favorite_label

    if state.image_phase is ImagePhase.LOADING:
        image = "<p><em>Generating illustration…</em></p>"
    elif state.image_phase is ImagePhase.READY:
        image = _image_html(state.illustration_ref, state.term)
    else:
        image = "<p><em>No illustration available.</em></p>"
    return entry_markdown(state.entry), image, favorite_label


def render_card(card: Optional[FlashCard], flipped: bool) -> Tuple[str, str]:
    """Renders one face of a flashcard as (markdown, image html)."""
    if card is None:
        return "", ""
    if not flipped:
        return f"# {card.front.term}\n\n`/{card.front.phonetic}/`\n\n*Tap Flip to see meaning*", ""

    lines = []
    for meaning in card.back.meanings:
        lines.append(f"- **{meaning.part_of_speech}** {meaning.definition}")
    if card.back.example is not None:
        lines += ["", "**Example**", f"*\"{card.back.example.sentence}\"*", card.back.example.translation]
    return "\n".join(lines), _image_html(card.back.illustration_ref, card.front.term)


class LexiDeckDemo:
    """Interactive demo interface for LexiDeck.

    Wires the lookup orchestrator, review engine, entry store and speech effect
    together. Every handler the Gradio interface binds to is a coroutine, so
    Gradio runs it on the event loop alongside streaming searches rather than
    on its worker threads.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        definition_provider: Optional[DefinitionProvider] = None,
        illustration_provider: Optional[IllustrationProvider] = None,
        store: Optional[EntryStore] = None,
        speech: Optional[GTTSSpeech] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        configure_logging(self.settings.log_level)

        if definition_provider is None or illustration_provider is None:
            default_definition, default_illustration = ProviderFactory.from_settings(self.settings)
            definition_provider = definition_provider or default_definition
            illustration_provider = illustration_provider or default_illustration

        self.store = store or EntryStore(self.settings.db_path, self.settings.collection_slot)
        self.orchestrator = LookupOrchestrator(definition_provider, illustration_provider)
        self.engine = ReviewEngine(rng)
        self.engine.start_session(self.store.load())
        self.speech = speech or GTTSSpeech(self.settings.audio_dir, self.settings.speech_lang)

        if not self.settings.api_key:
            logger.warning(
                "No API key configured for %s; lookups will fail", self.settings.ai_service
            )

    def current_view(self) -> LookupView:
        return render_lookup(
            self.orchestrator.state, self.orchestrator.is_favorite(self.store.load())
        )

    async def search(self, term: str) -> AsyncIterator[LookupView]:
        """Runs a search, yielding a rendered view after every state change."""
        updates: "asyncio.Queue[LookupState]" = asyncio.Queue()
        self.orchestrator.subscribe(updates.put_nowait)
        try:
            task = asyncio.create_task(self.orchestrator.search(term))
            while not task.done() or not updates.empty():
                try:
                    state = await asyncio.wait_for(updates.get(), timeout=0.1)
                except asyncio.TimeoutError:
                    continue
                yield render_lookup(state, self.orchestrator.is_favorite(self.store.load()))
            await task
        finally:
            self.orchestrator.unsubscribe(updates.put_nowait)
        yield self.current_view()

    async def toggle_favorite(self) -> Tuple[str, str]:
        """Saves or removes the displayed entry.

        Returns:
            A tuple of (status message, favorite button label).
        """
        saved = self.orchestrator.toggle_favorite(self.store)
        if saved is None:
            return "Search for a word first.", self.current_view()[2]

        self.engine.sync(self.store.load())
        term = self.orchestrator.state.entry.term
        message = f"Saved '{term}' to your deck." if saved else f"Removed '{term}' from your deck."
        return message, self.current_view()[2]

    async def pronounce(self, text: Optional[str] = None) -> Optional[str]:
        """Speaks text, or the displayed term, and returns the audio file path."""
        if text is None:
            entry = self.orchestrator.state.entry
            text = entry.term if entry is not None else ""
        if not text.strip():
            return None
        self.speech.speak(text)
        path = await self.speech.wait()
        return str(path) if path else None

    async def pronounce_example(self, number: int) -> Optional[str]:
        """Speaks the displayed entry's example sentence at 1-based position number."""
        entry = self.orchestrator.state.entry
        if entry is None or not 1 <= int(number) <= len(entry.examples):
            return None
        return await self.pronounce(entry.examples[int(number) - 1].sentence)

    def review_view(self) -> ReviewView:
        """Renders the review tab as (progress, card markdown, image html)."""
        session = self.engine.session
        if session.phase is ReviewPhase.EMPTY:
            return (
                "### No Favorites Yet",
                "Start searching for words and save them to build your flashcards.",
                "",
            )
        if session.phase is ReviewPhase.COMPLETE:
            return "### Session Complete!", self.engine.progress_label(), ""
        card_text, image = render_card(self.engine.current_card(), session.is_flipped)
        return self.engine.progress_label(), card_text, image

    async def refresh_review(self) -> ReviewView:
        self.engine.sync(self.store.load())
        return self.review_view()

    async def flip(self) -> ReviewView:
        self.engine.flip()
        return self.review_view()

    async def next_card(self) -> ReviewView:
        self.engine.advance()
        return self.review_view()

    async def restart(self) -> ReviewView:
        self.engine.restart()
        return self.review_view()

    async def pronounce_card(self) -> Optional[str]:
        card = self.engine.current_card()
        if card is None:
            return None
        return await self.pronounce(card.front.term)


def create_demo_interface(demo: Optional[LexiDeckDemo] = None) -> gr.Blocks:
    """Creates and configures the Gradio web interface for LexiDeck.

    Returns:
        A Gradio Blocks object ready to be launched.
    """
    demo = demo or LexiDeckDemo()

    with gr.Blocks(title="LexiDeck", theme=gr.themes.Soft()) as interface:
        gr.Markdown("# 📖 LexiDeck")
        gr.Markdown("Master academic English with AI definitions, illustrations and flashcards")

        with gr.Tab("Search"):
            with gr.Row():
                term_input = gr.Textbox(label="Word or phrase", placeholder="e.g. ephemeral")
                search_btn = gr.Button("Search", variant="primary")

            initial_text, initial_image, initial_label = demo.current_view()
            with gr.Row():
                with gr.Column(scale=3):
                    entry_output = gr.Markdown(initial_text)
                with gr.Column(scale=2):
                    image_output = gr.HTML(initial_image)

            with gr.Row():
                favorite_btn = gr.Button(initial_label)
                speak_btn = gr.Button("🔊 Pronounce")
            with gr.Row():
                example_choice = gr.Radio([1, 2, 3], value=1, label="Example")
                example_speak_btn = gr.Button("🔊 Read example")
            status_output = gr.Textbox(label="Status", interactive=False)
            audio_output = gr.Audio(label="Pronunciation", type="filepath", autoplay=True)

            search_btn.click(
                demo.search, inputs=[term_input], outputs=[entry_output, image_output, favorite_btn]
            )
            term_input.submit(
                demo.search, inputs=[term_input], outputs=[entry_output, image_output, favorite_btn]
            )
            favorite_btn.click(demo.toggle_favorite, outputs=[status_output, favorite_btn])
            speak_btn.click(demo.pronounce, outputs=audio_output)
            example_speak_btn.click(
                demo.pronounce_example, inputs=[example_choice], outputs=audio_output
            )

        with gr.Tab("Review") as review_tab:
            gr.Markdown("### Review Session")
            progress_output = gr.Markdown()
            card_output = gr.Markdown()
            card_image = gr.HTML()

            with gr.Row():
                flip_btn = gr.Button("Flip")
                next_btn = gr.Button("Next Word", variant="primary")
                restart_btn = gr.Button("Start New Session")
                card_speak_btn = gr.Button("🔊")
            card_audio = gr.Audio(label="Pronunciation", type="filepath", autoplay=True)

            review_outputs = [progress_output, card_output, card_image]
            review_tab.select(demo.refresh_review, outputs=review_outputs)
            flip_btn.click(demo.flip, outputs=review_outputs)
            next_btn.click(demo.next_card, outputs=review_outputs)
            restart_btn.click(demo.restart, outputs=review_outputs)
            card_speak_btn.click(demo.pronounce_card, outputs=card_audio)

    return interface


def main() -> None:
    """Runs the LexiDeck demo interface."""
    interface = create_demo_interface()
    interface.launch(share=False, server_name="0.0.0.0", server_port=7860)


if __name__ == "__main__":
    main()

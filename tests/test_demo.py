"""Unit tests for the demo module."""

import asyncio
import inspect
import random
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from fakes import ScriptedDefinitionProvider, ScriptedIllustrationProvider, make_entry, make_saved
from lexideck.config import Settings
from lexideck.core import ReviewPhase, build_card
from lexideck.database import EntryStore
from lexideck.demo import LexiDeckDemo, entry_markdown, render_card
from lexideck.errors import TextLookupFailure
from lexideck.lookup import TEXT_FAILURE_MESSAGE


async def _collect(views):
    return [view async for view in views]


class TestLexiDeckDemo:
    """Test suite for the LexiDeckDemo class."""

    @pytest.fixture
    def demo(self):
        """Fixture to create a LexiDeckDemo with scripted providers and an in-memory store."""
        definitions = ScriptedDefinitionProvider(
            {"lucid": make_entry("lucid", meanings=2), "qwzx": TextLookupFailure("qwzx")}
        )
        illustrations = ScriptedIllustrationProvider(
            {"lucid": "data:image/png;base64,AAAA", "qwzx": None}
        )
        speech = MagicMock()
        speech.wait = AsyncMock(return_value=Path("/tmp/lucid.mp3"))
        store = EntryStore()
        demo_instance = LexiDeckDemo(
            settings=Settings(api_key="fake_api_key"),
            definition_provider=definitions,
            illustration_provider=illustrations,
            store=store,
            speech=speech,
            rng=random.Random(3),
        )
        yield demo_instance
        store.close()

    def test_initial_view(self, demo: LexiDeckDemo) -> None:
        text, image, label = demo.current_view()
        assert "AI-powered definitions" in text
        assert image == ""
        assert "Save" in label

    def test_search_yields_progress_then_result(self, demo: LexiDeckDemo) -> None:
        views = asyncio.run(_collect(demo.search("lucid")))

        assert "Looking up" in views[0][0]
        text, image, label = views[-1]
        assert "## lucid" in text
        assert "data:image/png;base64,AAAA" in image
        assert "Save" in label

    def test_search_failure_shows_message(self, demo: LexiDeckDemo) -> None:
        views = asyncio.run(_collect(demo.search("qwzx")))
        assert TEXT_FAILURE_MESSAGE in views[-1][0]
        assert views[-1][1] == ""

    def test_blank_search_keeps_view(self, demo: LexiDeckDemo) -> None:
        views = asyncio.run(_collect(demo.search("   ")))
        assert views == [demo.current_view()]

    def test_toggle_favorite_without_search(self, demo: LexiDeckDemo) -> None:
        message, _ = asyncio.run(demo.toggle_favorite())
        assert message == "Search for a word first."
        assert demo.store.load() == ()

    def test_toggle_favorite_updates_store_and_review(self, demo: LexiDeckDemo) -> None:
        asyncio.run(_collect(demo.search("lucid")))

        message, label = asyncio.run(demo.toggle_favorite())

        assert message == "Saved 'lucid' to your deck."
        assert "Saved" in label
        assert demo.engine.phase is ReviewPhase.ACTIVE
        assert demo.engine.session.deck[0].term == "lucid"

        message, label = asyncio.run(demo.toggle_favorite())

        assert message == "Removed 'lucid' from your deck."
        assert demo.engine.phase is ReviewPhase.EMPTY

    def test_review_empty(self, demo: LexiDeckDemo) -> None:
        progress, text, image = demo.review_view()
        assert "No Favorites Yet" in progress

    def test_review_flow(self, demo: LexiDeckDemo) -> None:
        demo.store.replace((make_saved("ephemeral"), make_saved("lucid", illustration_ref="data:img")))

        progress, front, _ = asyncio.run(demo.refresh_review())
        assert progress == "Card 1 of 2"
        assert "Flip" in front

        _, back, _ = asyncio.run(demo.flip())
        assert "Example" in back

        progress, _, _ = asyncio.run(demo.next_card())
        assert progress == "Card 2 of 2"

        progress, summary, _ = asyncio.run(demo.next_card())
        assert "Session Complete" in progress
        assert summary == "You've reviewed 2 words."

        progress, _, _ = asyncio.run(demo.restart())
        assert progress == "Card 1 of 2"

    def test_pronounce_current_term(self, demo: LexiDeckDemo) -> None:
        asyncio.run(_collect(demo.search("lucid")))

        path = asyncio.run(demo.pronounce())

        demo.speech.speak.assert_called_once_with("lucid")
        assert path == str(Path("/tmp/lucid.mp3"))

    def test_pronounce_without_entry(self, demo: LexiDeckDemo) -> None:
        assert asyncio.run(demo.pronounce()) is None
        demo.speech.speak.assert_not_called()

    def test_pronounce_example_sentence(self, demo: LexiDeckDemo) -> None:
        asyncio.run(_collect(demo.search("lucid")))

        path = asyncio.run(demo.pronounce_example(1))

        demo.speech.speak.assert_called_once_with("A sentence with lucid #1.")
        assert path == str(Path("/tmp/lucid.mp3"))

    @pytest.mark.parametrize("number", [0, 2])
    def test_pronounce_missing_example(self, demo: LexiDeckDemo, number: int) -> None:
        asyncio.run(_collect(demo.search("lucid")))

        assert asyncio.run(demo.pronounce_example(number)) is None
        demo.speech.speak.assert_not_called()

    @pytest.mark.parametrize(
        "handler",
        ["search", "toggle_favorite", "pronounce", "pronounce_example",
         "refresh_review", "flip", "next_card", "restart", "pronounce_card"],
    )
    def test_handlers_run_on_event_loop(self, demo: LexiDeckDemo, handler: str) -> None:
        # Gradio runs plain functions on worker threads; handlers share one store connection.
        method = getattr(demo, handler)
        assert inspect.iscoroutinefunction(method) or inspect.isasyncgenfunction(method)

    def test_toggle_during_streaming_search(self, demo: LexiDeckDemo) -> None:
        demo.orchestrator.illustration_provider.gated = True

        async def scenario():
            views = demo.search("lucid")
            await views.__anext__()
            while demo.orchestrator.state.entry is None:
                await views.__anext__()
            message, _ = await demo.toggle_favorite()
            demo.orchestrator.illustration_provider.release("lucid")
            rest = [view async for view in views]
            return message, rest

        message, rest = asyncio.run(scenario())

        assert message == "Saved 'lucid' to your deck."
        assert rest[-1][2] == "★ Saved"
        assert demo.store.load()[0].illustration_ref is None


class TestRendering:
    def test_entry_markdown(self) -> None:
        text = entry_markdown(make_entry("lucid", meanings=2, examples=2))
        assert "## lucid" in text
        assert "lucid sense 2" in text
        assert "### Synonyms" in text
        assert "### Etymology" in text

    def test_render_card_faces(self) -> None:
        card = build_card(make_saved("lucid", illustration_ref="data:img", meanings=3))
        front, front_image = render_card(card, flipped=False)
        back, back_image = render_card(card, flipped=True)

        assert "# lucid" in front
        assert front_image == ""
        assert "lucid sense 3" not in back
        assert 'src="data:img"' in back_image

    def test_render_missing_card(self) -> None:
        assert render_card(None, flipped=True) == ("", "")

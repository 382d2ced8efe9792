"""Unit tests for the lookup orchestrator."""

import asyncio
from typing import List

import pytest

from fakes import ScriptedDefinitionProvider, ScriptedIllustrationProvider, make_entry
from lexideck.core import ImagePhase, LookupState, TextPhase
from lexideck.database import EntryStore
from lexideck.errors import ImageUnavailable, TextLookupFailure
from lexideck.lookup import TEXT_FAILURE_MESSAGE, LookupOrchestrator

CAT = make_entry("cat")
DOG = make_entry("dog")


def _orchestrator(definitions, illustrations, gated=False):
    return LookupOrchestrator(
        ScriptedDefinitionProvider(definitions, gated=gated),
        ScriptedIllustrationProvider(illustrations, gated=gated),
    )


class TestSearch:
    def test_success_sets_entry_and_image(self) -> None:
        orchestrator = _orchestrator({"cat": CAT}, {"cat": "data:image/png;base64,AAAA"})

        state = asyncio.run(orchestrator.search("cat"))

        assert state.term == "cat"
        assert state.entry == CAT
        assert state.text_phase is TextPhase.READY
        assert state.illustration_ref == "data:image/png;base64,AAAA"
        assert state.image_phase is ImagePhase.READY
        assert state.error_message is None
        assert orchestrator.definition_provider.calls == ["cat"]
        assert orchestrator.illustration_provider.calls == ["cat"]

    def test_term_is_trimmed(self) -> None:
        orchestrator = _orchestrator({"cat": CAT}, {"cat": None})

        state = asyncio.run(orchestrator.search("  cat \t"))

        assert state.term == "cat"
        assert orchestrator.definition_provider.calls == ["cat"]

    @pytest.mark.parametrize("term", ["", "   ", "\n"])
    def test_blank_input_issues_no_requests(self, term) -> None:
        orchestrator = _orchestrator({}, {})

        assert asyncio.run(orchestrator.search(term)) is None
        assert orchestrator.state == LookupState()
        assert orchestrator.definition_provider.calls == []
        assert orchestrator.illustration_provider.calls == []

    def test_reset_happens_before_requests(self) -> None:
        orchestrator = _orchestrator({"cat": CAT, "dog": DOG}, {"cat": "data:cat", "dog": "data:dog"})
        asyncio.run(orchestrator.search("cat"))

        seen: List[LookupState] = []
        orchestrator.subscribe(seen.append)

        async def scenario():
            task = asyncio.create_task(orchestrator.search("dog"))
            await asyncio.sleep(0)
            reset_state = orchestrator.state
            await task
            return reset_state

        reset_state = asyncio.run(scenario())

        assert reset_state == LookupState(
            term="dog", text_phase=TextPhase.LOADING, image_phase=ImagePhase.LOADING
        )
        assert seen[0] == reset_state
        assert seen[-1].entry == DOG

    def test_listener_receives_every_change(self) -> None:
        orchestrator = _orchestrator({"cat": CAT}, {"cat": "data:cat"})
        seen: List[LookupState] = []
        orchestrator.subscribe(seen.append)

        asyncio.run(orchestrator.search("cat"))

        assert len(seen) == 3
        assert seen[-1].settled

    def test_failing_listener_does_not_break_search(self) -> None:
        orchestrator = _orchestrator({"cat": CAT}, {"cat": None})

        def broken(state: LookupState) -> None:
            raise RuntimeError("render failed")

        orchestrator.subscribe(broken)
        state = asyncio.run(orchestrator.search("cat"))

        assert state.text_phase is TextPhase.READY

    def test_unsubscribe(self) -> None:
        orchestrator = _orchestrator({"cat": CAT}, {"cat": None})
        seen: List[LookupState] = []
        orchestrator.subscribe(seen.append)
        orchestrator.unsubscribe(seen.append)

        asyncio.run(orchestrator.search("cat"))

        assert seen == []


class TestFailures:
    def test_image_failure_is_cosmetic(self) -> None:
        orchestrator = _orchestrator({"cat": CAT}, {"cat": ImageUnavailable("no image")})

        state = asyncio.run(orchestrator.search("cat"))

        assert state.text_phase is TextPhase.READY
        assert state.image_phase is ImagePhase.UNAVAILABLE
        assert state.illustration_ref is None
        assert state.error_message is None

    @pytest.mark.parametrize("empty", [None, ""])
    def test_empty_image_is_unavailable(self, empty) -> None:
        orchestrator = _orchestrator({"cat": CAT}, {"cat": empty})

        state = asyncio.run(orchestrator.search("cat"))

        assert state.image_phase is ImagePhase.UNAVAILABLE

    def test_transport_error_is_text_failure(self) -> None:
        orchestrator = _orchestrator({"cat": ConnectionError("offline")}, {"cat": None})

        state = asyncio.run(orchestrator.search("cat"))

        assert state.failed
        assert state.error_message == TEXT_FAILURE_MESSAGE

    @pytest.mark.parametrize("text_first", [True, False])
    def test_image_success_never_clears_text_failure(self, text_first) -> None:
        orchestrator = _orchestrator(
            {"cat": TextLookupFailure("cat", "not found")}, {"cat": "data:cat"}, gated=True
        )
        definitions = orchestrator.definition_provider
        illustrations = orchestrator.illustration_provider

        async def scenario():
            task = asyncio.create_task(orchestrator.search("cat"))
            await asyncio.sleep(0)
            first, second = (definitions, illustrations) if text_first else (illustrations, definitions)
            first.release("cat")
            for _ in range(5):
                await asyncio.sleep(0)
            second.release("cat")
            return await task

        state = asyncio.run(scenario())

        assert state.text_phase is TextPhase.FAILED
        assert state.error_message == TEXT_FAILURE_MESSAGE
        assert state.entry is None
        assert state.image_phase is ImagePhase.READY


class TestGenerationGuard:
    def test_late_results_do_not_overwrite_newer_search(self) -> None:
        orchestrator = _orchestrator(
            {"cat": CAT, "dog": DOG}, {"cat": "data:cat", "dog": "data:dog"}, gated=True
        )
        definitions = orchestrator.definition_provider
        illustrations = orchestrator.illustration_provider

        async def scenario():
            cat_task = asyncio.create_task(orchestrator.search("cat"))
            await asyncio.sleep(0)
            dog_task = asyncio.create_task(orchestrator.search("dog"))
            await asyncio.sleep(0)

            definitions.release("dog")
            illustrations.release("dog")
            dog_state = await dog_task

            definitions.release("cat")
            illustrations.release("cat")
            cat_state = await cat_task
            return dog_state, cat_state

        dog_state, cat_state = asyncio.run(scenario())

        assert cat_state is None
        assert dog_state.entry == DOG
        assert orchestrator.state == dog_state
        assert orchestrator.state.illustration_ref == "data:dog"

    def test_old_results_arriving_while_new_search_loads(self) -> None:
        orchestrator = _orchestrator(
            {"cat": CAT, "dog": DOG}, {"cat": "data:cat", "dog": "data:dog"}, gated=True
        )
        definitions = orchestrator.definition_provider
        illustrations = orchestrator.illustration_provider

        async def scenario():
            cat_task = asyncio.create_task(orchestrator.search("cat"))
            await asyncio.sleep(0)
            dog_task = asyncio.create_task(orchestrator.search("dog"))
            await asyncio.sleep(0)

            definitions.release("cat")
            illustrations.release("cat")
            await cat_task
            during = orchestrator.state

            definitions.release("dog")
            illustrations.release("dog")
            await dog_task
            return during

        during = asyncio.run(scenario())

        assert during.term == "dog"
        assert during.entry is None
        assert during.text_phase is TextPhase.LOADING
        assert during.image_phase is ImagePhase.LOADING
        assert orchestrator.generation == 2


class TestFavorites:
    def test_toggle_without_entry_is_noop(self) -> None:
        orchestrator = _orchestrator({"cat": TextLookupFailure("cat")}, {"cat": "data:cat"})
        asyncio.run(orchestrator.search("cat"))

        with EntryStore() as store:
            assert orchestrator.toggle_favorite(store) is None
            assert store.load() == ()

    def test_toggle_saves_current_illustration(self) -> None:
        orchestrator = _orchestrator({"cat": CAT}, {"cat": "data:cat"})
        asyncio.run(orchestrator.search("cat"))

        with EntryStore() as store:
            assert orchestrator.toggle_favorite(store, saved_at=7) is True
            saved = store.load()[0]
            assert saved.term == "cat"
            assert saved.illustration_ref == "data:cat"
            assert saved.saved_at_epoch_millis == 7
            assert orchestrator.is_favorite(store.load())

            assert orchestrator.toggle_favorite(store) is False
            assert not orchestrator.is_favorite(store.load())

    def test_toggle_before_image_resolves_saves_without_image(self) -> None:
        orchestrator = _orchestrator({"cat": CAT}, {"cat": "data:cat"}, gated=True)
        definitions = orchestrator.definition_provider
        illustrations = orchestrator.illustration_provider

        with EntryStore() as store:

            async def scenario():
                task = asyncio.create_task(orchestrator.search("cat"))
                await asyncio.sleep(0)
                definitions.release("cat")
                while orchestrator.state.text_phase is not TextPhase.READY:
                    await asyncio.sleep(0)
                orchestrator.toggle_favorite(store)
                illustrations.release("cat")
                await task

            asyncio.run(scenario())

            assert store.load()[0].illustration_ref is None
            assert orchestrator.state.illustration_ref == "data:cat"

#!/usr/bin/env python3
"""Basic usage example for LexiDeck."""

import asyncio
import random

from lexideck import EntryStore, LookupOrchestrator, ProviderFactory, ReviewEngine
from lexideck.config import Settings, configure_logging


async def look_up_and_save(orchestrator: LookupOrchestrator, store: EntryStore, terms) -> None:
    for term in terms:
        print(f"\n🔎 Looking up: {term}")
        state = await orchestrator.search(term)
        if state is None or state.failed:
            print(f"   ❌ {orchestrator.state.error_message}")
            continue

        print(f"   /{state.entry.phonetic}/ {state.entry.meanings[0].definition}")
        print(f"   Illustration: {state.image_phase.value}")
        orchestrator.toggle_favorite(store)
        print(f"   ⭐ Saved {state.entry.term}")


def main() -> None:
    """Demonstrate searching, saving and reviewing entries."""
    print("📖 LexiDeck Basic Usage Example")
    print("=" * 50)

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    if not settings.api_key:
        print(f"⚠️  No API key found for {settings.ai_service}.")
        print("   Set GEMINI_API_KEY or OPENAI_API_KEY; lookups will fail without one.")

    definitions, illustrations = ProviderFactory.from_settings(settings)
    orchestrator = LookupOrchestrator(definitions, illustrations)

    with EntryStore(settings.db_path, settings.collection_slot) as store:
        asyncio.run(look_up_and_save(orchestrator, store, ["ephemeral", "lucid"]))

        collection = store.load()
        print(f"\n📚 Collection holds {len(collection)} entries")

        engine = ReviewEngine(random.Random())
        engine.start_session(collection)
        while engine.current_card() is not None:
            card = engine.current_card()
            print(f"\n🃏 {engine.progress_label()}: {card.front.term} /{card.front.phonetic}/")
            engine.flip()
            for meaning in card.back.meanings:
                print(f"   {meaning.part_of_speech}: {meaning.definition}")
            if card.back.example is not None:
                print(f"   \"{card.back.example.sentence}\"")
            engine.advance()

        print(f"\n🎉 {engine.progress_label()}")


if __name__ == "__main__":
    main()

import asyncio
import os
import sys

from dotenv import load_dotenv

from lexideck.ai import ProviderFactory
from lexideck.errors import LexiDeckError


async def check_service(service_type: str, api_key: str) -> bool:
    definitions = ProviderFactory.create_definition_provider(service_type, api_key)
    illustrations = ProviderFactory.create_illustration_provider(service_type, api_key)

    try:
        entry = await definitions.define("hello")
        print(f"✅ {service_type} definition lookup successful: {entry.meanings[0].definition}")
    except LexiDeckError as e:
        print(f"❌ {service_type} definition lookup failed: {e}")
        return False

    try:
        image = await illustrations.illustrate("hello")
    except LexiDeckError as e:
        image = None
        print(f"⚠️  {service_type} illustration failed: {e}")
    if image:
        print(f"✅ {service_type} illustration successful ({len(image)} characters)")
    else:
        print(f"⚠️  {service_type} returned no illustration")
    return True


def main():
    load_dotenv()

    print("--- Checking API Connectivity ---")

    results = []
    for service_type in ProviderFactory.get_available_services():
        api_key = os.getenv(f"{service_type.upper()}_API_KEY")
        if not api_key:
            print(f"\nSkipping {service_type} check: {service_type.upper()}_API_KEY not found in .env")
            continue

        print(f"\nAttempting {service_type} connection...")
        results.append(asyncio.run(check_service(service_type, api_key)))

    print("\n--- Connectivity Check Complete ---")

    if not any(results):
        print("Neither OpenAI nor Gemini could produce a dictionary entry.")
        sys.exit(1)


if __name__ == "__main__":
    main()

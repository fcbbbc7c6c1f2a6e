#!/usr/bin/env python3
"""
Dev helper: verify that the AI features are configured and reachable.

Checks that ANTHROPIC_API_KEY is present (and not a placeholder), then sends
a one-line prompt through the same code path the generation endpoints use.

Usage
-----
python scripts/check_ai_connection.py

Environment / .env
------------------
ANTHROPIC_API_KEY   Required.
ANTHROPIC_MODEL     Optional model override.

mailcannon.config loads .env from the current directory on import.
"""

import sys

from mailcannon.config import get_anthropic_api_key
from mailcannon.services.errors import GenerationError, InvalidCredential
from mailcannon.services.generator import check_connection


def main() -> int:
    print("----------------------------------------")
    print("Testing AI connection")
    print("----------------------------------------")

    api_key = get_anthropic_api_key()
    if api_key is None:
        print("- ANTHROPIC_API_KEY: missing")
        print(
            "\nERROR: No API key found. Set ANTHROPIC_API_KEY in your environment "
            "or .env file.",
            file=sys.stderr,
        )
        return 1

    placeholder = " (looks like a placeholder)" if api_key.startswith("your_") else ""
    print(f"- ANTHROPIC_API_KEY: set, length {len(api_key)}{placeholder}")

    print("\nSending test prompt...")
    try:
        reply = check_connection()
    except InvalidCredential as e:
        print(f"\n[FAIL] {e.message}", file=sys.stderr)
        return 1
    except GenerationError as e:
        print(f"\n[FAIL] {e.message}", file=sys.stderr)
        return 1

    print(f'\n[OK] Response from AI: "{reply.strip()}"')
    return 0


if __name__ == "__main__":
    sys.exit(main())

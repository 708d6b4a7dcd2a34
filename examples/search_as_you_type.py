"""
search_as_you_type.py: Discard stale lookups.

Fires overlapping searches the way a keystroke handler would. Slow early
searches still finish, but only the last one delivers results.

Usage:
    python examples/search_as_you_type.py
"""

import asyncio
import random

from quorum import SupersededError, latest


@latest
async def search(term: str) -> list[str]:
    await asyncio.sleep(random.uniform(0.05, 0.3))
    return [f"{term}-{n}" for n in range(3)]


async def main() -> None:
    calls = []
    for term in ("q", "qu", "quo", "quor"):
        calls.append((term, search(term)))
        await asyncio.sleep(0.02)

    for term, call in calls:
        try:
            print(f"{term!r}: {await call}")
        except SupersededError as error:
            print(f"{term!r}: discarded (call {error.generation} < {error.current})")


if __name__ == "__main__":
    asyncio.run(main())

"""
regional_quorum.py: Read from any two of three replicas.

Resolves as soon as two lookups succeed and prints progress for every
replica, including the one that answers after the quorum.

Usage:
    python examples/regional_quorum.py
"""

import asyncio
import logging

from quorum import QuorumSettings, QuorumUnreachableError, some


async def lookup(region: str, delay: float, fail: bool = False) -> dict[str, str]:
    await asyncio.sleep(delay)
    if fail:
        raise ConnectionError(f"{region} unreachable")
    return {"region": region, "status": "ok"}


async def main() -> None:
    policy = QuorumSettings.from_env().aggregate_policy()
    tasks = {
        "eu": lookup("eu", 0.10),
        "us": lookup("us", 0.05, fail=True),
        "ap": lookup("ap", 0.20),
    }
    try:
        values = await some(
            tasks,
            2,
            policy=policy,
            on_progress=lambda event: print(f"progress: {event}"),
        )
    except QuorumUnreachableError as error:
        print(f"Every replica failed: {error.reasons}")
        return
    print(f"Quorum values: {values}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    asyncio.run(main())

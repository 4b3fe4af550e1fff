"""Rebuild every user's denormalized rating fields from the reviews table.

Usage: python recalculate_ratings.py
"""

import argparse
import asyncio
import logging

from liz.core.database import engine, session_scope
from liz.modules.reviews.aggregates import recalculate_all

logger = logging.getLogger("recalculate_ratings")


async def run() -> int:
    try:
        async with session_scope() as session:
            total = await recalculate_all(session)
    finally:
        await engine.dispose()
    logger.info("recomputed ratings for %d user(s)", total)
    return total


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    asyncio.run(run())


if __name__ == "__main__":
    main()

"""
Seed default categories, the Global field set and studio locations.

Safe to re-run: existing rows are left alone.

Usage:
    python -m scripts.seed
"""

import asyncio
import logging

from app.database import AsyncSessionLocal, close_db
from app.services.seed import seed_catalog

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def main() -> None:
    async with AsyncSessionLocal() as db:
        stats = await seed_catalog(db)
        await db.commit()
    logger.info(f"Seed complete: {stats}")
    await close_db()


if __name__ == "__main__":
    asyncio.run(main())

"""
Import subcategory form fields from the spreadsheet CSV export.

Usage:
    python -m scripts.import_fields path/to/fields.csv [--dry-run]
"""

import argparse
import asyncio
import logging
from pathlib import Path

from app.database import AsyncSessionLocal, close_db
from app.services.field_import import import_fields, parse_csv

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def run(csv_path: Path, dry_run: bool) -> None:
    rows = parse_csv(csv_path.read_text(encoding="utf-8"))
    logger.info(f"Read {len(rows)} rows from {csv_path}")

    async with AsyncSessionLocal() as db:
        stats = await import_fields(db, rows)
        if dry_run:
            await db.rollback()
            logger.info("Dry run, nothing committed")
        else:
            await db.commit()

    logger.info(f"Import stats: {stats}")
    await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("csv_path", type=Path)
    parser.add_argument("--dry-run", action="store_true", help="roll back instead of committing")
    args = parser.parse_args()
    asyncio.run(run(args.csv_path, args.dry_run))


if __name__ == "__main__":
    main()

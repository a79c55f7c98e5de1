#!/usr/bin/env python3
"""
Initialize all databases (PostgreSQL, MongoDB)
Creates the SQL schema and catalog indexes, and seeds the floor plan and menu
"""

import sys
import json
import logging
import argparse
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("init_databases")

DEFAULT_SEED_FILE = Path(__file__).parent.parent / "data" / "bistro_menu.json"


def load_seed(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def init_postgresql(seed: dict) -> bool:
    """Create SQL tables and upsert the dining tables"""
    logger.info("=" * 60)
    logger.info("Initializing PostgreSQL...")
    logger.info("=" * 60)

    from sqlalchemy import inspect
    from sqlalchemy.exc import SQLAlchemyError

    from domain.models.database import engine, init_database, SessionLocal
    from repositories import TableRepository

    try:
        init_database()
        tables = inspect(engine).get_table_names()
        logger.info(f"✓ Created {len(tables)} tables: {', '.join(tables)}")

        with SessionLocal() as db:
            repo = TableRepository(db)
            for table in seed.get("tables", []):
                repo.upsert(table["id"], table["name"], table["seat_count"])
        logger.info(f"✓ Seeded {len(seed.get('tables', []))} dining tables")
        return True
    except SQLAlchemyError as e:
        logger.exception(f"✗ Failed to initialize PostgreSQL: {e}")
        return False


def init_mongodb(seed: dict) -> bool:
    """Create catalog indexes and upsert menu categories and items"""
    logger.info("=" * 60)
    logger.info("Initializing MongoDB...")
    logger.info("=" * 60)

    from adapters import mongo_adapter
    from app.config import settings
    from app.exceptions import CatalogUnavailableError
    from domain.catalog import MenuCategory, MenuItem
    from domain.mappers import CatalogMapper

    if not mongo_adapter.connect(settings.mongo_uri, settings.mongo_db_name):
        logger.error("✗ Failed to connect to MongoDB")
        return False

    try:
        mongo_adapter.ensure_indexes()
        categories = [
            CatalogMapper.category_to_document(MenuCategory(**c))
            for c in seed.get("categories", [])
        ]
        items = [
            CatalogMapper.menu_item_to_document(
                MenuItem(
                    id=i["id"],
                    category_id=i["category_id"],
                    name=i["name"],
                    unit_price=i["price"],
                    popular=i.get("popular", False),
                    description=i.get("description"),
                )
            )
            for i in seed.get("items", [])
        ]
        mongo_adapter.upsert_categories(categories)
        mongo_adapter.upsert_menu_items(items)
        logger.info(f"✓ Seeded {len(categories)} categories and {len(items)} menu items")
        return True
    except CatalogUnavailableError as e:
        logger.error(f"✗ Failed to initialize MongoDB: {e}")
        return False
    finally:
        mongo_adapter.close()


def main(argv=None) -> int:
    """Run all database initializations"""
    parser = argparse.ArgumentParser(description="Initialize TablePOS databases")
    parser.add_argument(
        "--seed-file",
        type=Path,
        default=DEFAULT_SEED_FILE,
        help="JSON file with categories, items and tables",
    )
    args = parser.parse_args(argv)

    logger.info("=" * 60)
    logger.info("TablePOS Database Initialization")
    logger.info("=" * 60)

    seed = load_seed(args.seed_file)
    results = {
        "PostgreSQL": init_postgresql(seed),
        "MongoDB": init_mongodb(seed),
    }

    logger.info("=" * 60)
    logger.info("Initialization Summary")
    logger.info("=" * 60)

    for db_name, success in results.items():
        status = "✓ SUCCESS" if success else "✗ FAILED"
        logger.info(f"{db_name}: {status}")

    if all(results.values()):
        logger.info("✓ All databases initialized successfully!")
        return 0

    logger.error("✗ Some databases failed to initialize")
    return 1


if __name__ == "__main__":
    sys.exit(main())

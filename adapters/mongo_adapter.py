"""MongoDB adapter for the menu catalog.

Collections:
    menu_category  {_id: int, name, description}
    menu_item      {_id: int, category_id: int, name, price: Decimal128, popular, description}

Unlike a best-effort cache, the catalog is required for taking orders: every
read raises CatalogUnavailableError when MongoDB is not connected or fails.
"""

from typing import Optional, Dict, List, Any, Iterable
import logging
from pymongo import MongoClient, ASCENDING, ReplaceOne
from pymongo.errors import PyMongoError

from app.exceptions import CatalogUnavailableError

logger = logging.getLogger("tablepos.mongo")

_client = None
_db = None

MENU_ITEMS = "menu_item"
MENU_CATEGORIES = "menu_category"


# ------------------ Connection ------------------
def connect(uri: str, db_name: str = "tablepos") -> bool:
    """Open the client and ping it. Returns False (and stays disconnected) on failure."""
    global _client, _db
    try:
        _client = MongoClient(uri, serverSelectionTimeoutMS=5000)
        _db = _client[db_name]
        _client.admin.command("ping")
        logger.info("Connected to MongoDB %s (database: %s)", uri, db_name)
        return True
    except PyMongoError as exc:
        _client = None
        _db = None
        logger.warning("Could not initialize MongoDB client: %s", exc)
        return False


def use_database(db) -> None:
    """Bind an already-open database handle (used by scripts and tests)."""
    global _db
    _db = db


def close():
    """Close MongoDB connection."""
    global _client, _db
    try:
        if _client is not None:
            _client.close()
            logger.info("MongoDB client closed")
    except PyMongoError:
        logger.exception("Error closing MongoDB client")
    finally:
        _client = None
        _db = None


def is_connected() -> bool:
    return _db is not None


def _require_db():
    if _db is None:
        raise CatalogUnavailableError("Menu catalog is not connected")
    return _db


def ensure_indexes() -> None:
    db = _require_db()
    try:
        db[MENU_ITEMS].create_index([("category_id", ASCENDING), ("name", ASCENDING)])
    except PyMongoError as e:
        raise CatalogUnavailableError(f"Could not create catalog indexes: {e}") from e


# ------------------ Reads ------------------
def get_menu_item(menu_item_id: int) -> Optional[Dict[str, Any]]:
    """Fetch a single menu item document.

    Args:
        menu_item_id: Catalog id

    Returns:
        Menu item document or None if not found
    """
    db = _require_db()
    try:
        doc = db[MENU_ITEMS].find_one({"_id": menu_item_id})
    except PyMongoError as e:
        logger.exception("Error fetching menu item %s", menu_item_id)
        raise CatalogUnavailableError(
            f"Could not read menu item {menu_item_id}", details={"menu_item_id": menu_item_id}
        ) from e
    if doc is None:
        logger.debug("Menu item not found: %s", menu_item_id)
    return doc


def find_menu_items(category_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """List menu item documents, optionally for one category, ordered by category then name."""
    db = _require_db()
    filter_query: Dict[str, Any] = {}
    if category_id is not None:
        filter_query["category_id"] = category_id
    try:
        items = list(
            db[MENU_ITEMS]
            .find(filter_query)
            .sort([("category_id", ASCENDING), ("name", ASCENDING)])
        )
    except PyMongoError as e:
        logger.exception("Error listing menu items")
        raise CatalogUnavailableError("Could not list menu items") from e
    logger.debug("Found %d menu items (category=%s)", len(items), category_id)
    return items


def find_categories() -> List[Dict[str, Any]]:
    db = _require_db()
    try:
        return list(db[MENU_CATEGORIES].find({}).sort("_id", ASCENDING))
    except PyMongoError as e:
        logger.exception("Error listing menu categories")
        raise CatalogUnavailableError("Could not list menu categories") from e


# ------------------ Writes (seeding) ------------------
def _replace_all(collection: str, documents: Iterable[Dict[str, Any]]) -> int:
    db = _require_db()
    ops = [ReplaceOne({"_id": doc["_id"]}, doc, upsert=True) for doc in documents]
    if not ops:
        return 0
    try:
        result = db[collection].bulk_write(ops)
    except PyMongoError as e:
        logger.exception("Error writing %s documents", collection)
        raise CatalogUnavailableError(f"Could not write {collection}") from e
    return result.upserted_count + result.modified_count


def upsert_menu_items(documents: Iterable[Dict[str, Any]]) -> int:
    return _replace_all(MENU_ITEMS, documents)


def upsert_categories(documents: Iterable[Dict[str, Any]]) -> int:
    return _replace_all(MENU_CATEGORIES, documents)

"""Task category lookups."""

import logging

from taskboard.core import db_client
from taskboard.domain.category import Category
from taskboard.domain.create_models import CategoryCreate


logger = logging.getLogger(__name__)

COLLECTION = "task_categories"


async def list_categories() -> list[Category]:
    """Get active categories ordered by sort order, then name."""
    records = await db_client.list_all_records(
        collection=COLLECTION,
        filter_query='is_active = "1"',
        sort="sort_order",
    )
    categories = [Category.model_validate(r) for r in records]
    return sorted(categories, key=lambda c: (c.sort_order, c.name.lower()))


async def create_category(*, payload: CategoryCreate) -> Category:
    """Create a category record."""
    record = await db_client.create_record(collection=COLLECTION, data=payload.model_dump())
    logger.info("Created category", extra={"category_id": record["id"], "category_name": record["name"]})
    return Category.model_validate(record)

# petshop/populate_db.py
import logging
from decimal import Decimal
from pathlib import Path

import pandas as pd

from petshop.database import Store
from petshop.models.product import Category, Product

logger = logging.getLogger(__name__)

# Static catalog descriptors shipped with the package
DATA_DIR = Path(__file__).parent / "data_source"


def _opt(value):
    return None if pd.isna(value) else str(value)


def seed_catalog(store: Store, data_dir=DATA_DIR) -> int:
    """Populate categories and products on first run.

    Does nothing when categories already exist. Returns the number of
    products inserted.
    """
    data_dir = Path(data_dir)
    with store.session() as db:
        if db.query(Category).first() is not None:
            logger.debug("Catalog already seeded, skipping")
            return 0

        categories_df = pd.read_csv(data_dir / "categories.csv", dtype={"name": str})
        products_df = pd.read_csv(data_dir / "products.csv", dtype={"category": str, "price": str})

        # Insert categories first so products can resolve their parent
        category_map = {}
        for _, row in categories_df.iterrows():
            category = Category(
                name=row["name"],
                display_order=int(row["display_order"]),
                name_resource=_opt(row.get("name_resource")),
                image_resource=_opt(row.get("image_resource")),
            )
            db.add(category)
            category_map[row["name"]] = category
        db.flush()

        inserted = 0
        for _, row in products_df.iterrows():
            category = category_map.get(row["category"])
            if category is None:
                logger.warning("Skipping product %r with unknown category %r", row["name"], row["category"])
                continue
            db.add(Product(
                category_id=category.id,
                name=row["name"],
                description=_opt(row.get("description")),
                price=Decimal(row["price"]),
                name_resource=_opt(row.get("name_resource")),
                image_resource=_opt(row.get("image_resource")),
                description_resource=_opt(row.get("description_resource")),
            ))
            inserted += 1

        db.commit()

    logger.info("Seeded %d categories and %d products", len(category_map), inserted)
    return inserted

# petshop/services/catalog.py
from typing import Callable, List, Optional

from petshop.database import Store
from petshop.models.product import Category, Product
from petshop.schemas.product import CategoryOut, ProductOut
from petshop.utils.live import Subscription

# Allowed sort keys for product listings
SORT_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
}


class CatalogService:
    """Read-only access to categories and products."""

    def __init__(self, store: Store):
        self.store = store

    @staticmethod
    def _categories(db) -> List[CategoryOut]:
        rows = db.query(Category).order_by(Category.display_order.asc(), Category.id.asc()).all()
        return [CategoryOut.model_validate(c) for c in rows]

    def all_categories(self) -> List[CategoryOut]:
        return self.store.read(self._categories)

    def category_by_id(self, category_id: int) -> Optional[CategoryOut]:
        def query(db):
            category = db.get(Category, category_id)
            return CategoryOut.model_validate(category) if category else None

        return self.store.read(query)

    def _products_query(self, category_id: int, sort_by: Optional[str], order: str):
        def query(db):
            q = db.query(Product).filter(Product.category_id == category_id)
            if sort_by:
                sort_col = SORT_COLUMNS.get(sort_by.lower(), Product.name)
                q = q.order_by(sort_col.desc() if order == "desc" else sort_col.asc())
            return [ProductOut.model_validate(p) for p in q.all()]

        return query

    def products_by_category(self, category_id: int, sort_by: Optional[str] = None,
                             order: str = "asc") -> List[ProductOut]:
        return self.store.read(self._products_query(category_id, sort_by, order))

    def product_by_id(self, product_id: int) -> Optional[ProductOut]:
        def query(db):
            product = db.get(Product, product_id)
            return ProductOut.model_validate(product) if product else None

        return self.store.read(query)

    # ---- LIVE QUERIES ----
    def watch_categories(self, callback: Callable[[List[CategoryOut]], None]) -> Subscription:
        return self.store.watch({"categories"}, self._categories, callback)

    def watch_products_by_category(self, category_id: int, callback: Callable[[List[ProductOut]], None],
                                   sort_by: Optional[str] = None, order: str = "asc") -> Subscription:
        return self.store.watch({"products"}, self._products_query(category_id, sort_by, order), callback)

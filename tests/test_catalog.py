from decimal import Decimal

import pytest

from petshop.database import Base
from petshop.errors import StorageError


def test_categories_in_display_order(catalog, products):
    assert [c.name for c in catalog.all_categories()] == ["Dog", "Bird"]


def test_category_by_id(catalog, products):
    assert catalog.category_by_id(products["bird_category"]).name == "Bird"
    assert catalog.category_by_id(999) is None


def test_products_by_category(catalog, products):
    names = {p.name for p in catalog.products_by_category(products["dog_category"])}
    assert names == {"Salmon Dog Food", "Wet Dog Food"}


def test_products_sorted_on_request(catalog, products):
    by_price = catalog.products_by_category(products["dog_category"], sort_by="price")
    assert [p.name for p in by_price] == ["Wet Dog Food", "Salmon Dog Food"]
    by_price_desc = catalog.products_by_category(products["dog_category"], sort_by="price", order="desc")
    assert [p.name for p in by_price_desc] == ["Salmon Dog Food", "Wet Dog Food"]


def test_product_by_id(catalog, products):
    product = catalog.product_by_id(products["cage"])
    assert product.name == "Bird Cage"
    assert product.category_id == products["bird_category"]
    assert catalog.product_by_id(999) is None


def test_watch_products_by_category(store, catalog, products):
    seen = []
    sub = catalog.watch_products_by_category(products["bird_category"], lambda ps: seen.append(len(ps)))
    from petshop.models.product import Product

    with store.session() as db:
        db.add(Product(category_id=products["bird_category"], name="Perch", price=Decimal("3.50")))
        db.commit()
    sub.cancel()
    assert seen == [1, 2]


def test_read_failure_raises_storage_error(store, catalog):
    Base.metadata.drop_all(store.engine)
    with pytest.raises(StorageError):
        catalog.all_categories()

from petshop.models.product import Category, Product
from petshop.populate_db import DATA_DIR, seed_catalog


def _data_rows(name):
    with open(DATA_DIR / name, encoding="utf-8") as f:
        return sum(1 for line in f if line.strip()) - 1


def test_seed_populates_catalog(store, catalog):
    inserted = seed_catalog(store)

    assert inserted == _data_rows("products.csv")
    categories = catalog.all_categories()
    assert len(categories) == _data_rows("categories.csv")
    assert categories[0].name == "Dog"
    assert all(p.price > 0 for p in catalog.products_by_category(categories[0].id))


def test_seed_runs_once(store):
    seed_catalog(store)
    assert seed_catalog(store) == 0
    with store.session() as db:
        assert db.query(Category).count() == _data_rows("categories.csv")
        assert db.query(Product).count() == _data_rows("products.csv")


def test_seed_skips_unknown_category(store, tmp_path):
    (tmp_path / "categories.csv").write_text("name,display_order\nDog,1\n")
    (tmp_path / "products.csv").write_text(
        "category,name,description,price\n"
        "Dog,Bone,Chew toy,4.50\n"
        "Horse,Saddle,,120.00\n"
    )
    assert seed_catalog(store, data_dir=tmp_path) == 1

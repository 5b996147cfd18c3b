from decimal import Decimal

import pytest

from petshop.database import Store
from petshop.models.product import Category, Product
from petshop.services import AccountService, AuthService, CartService, CatalogService, OrderService
from petshop.utils.session_store import DeviceSession, PreferenceStore

SECRET = "test-secret"


@pytest.fixture
def store(tmp_path):
    store = Store(f"sqlite:///{tmp_path / 'petshop_test.db'}")
    store.init_db()
    yield store
    store.dispose()


@pytest.fixture
def prefs_path(tmp_path):
    return tmp_path / "petshop_prefs.json"


@pytest.fixture
def device_session(prefs_path):
    return DeviceSession(PreferenceStore(prefs_path), secret_key=SECRET)


@pytest.fixture
def auth(store, device_session):
    return AuthService(store, device_session)


@pytest.fixture
def catalog(store):
    return CatalogService(store)


@pytest.fixture
def cart(store):
    return CartService(store)


@pytest.fixture
def orders(store, cart):
    return OrderService(store, cart)


@pytest.fixture
def account(store, device_session, tmp_path):
    return AccountService(store, device_session, tmp_path / "profile_images")


@pytest.fixture
def products(store):
    """Two categories with a few priced products; returns name -> id."""
    with store.session() as db:
        dogs = Category(name="Dog", display_order=1)
        birds = Category(name="Bird", display_order=2)
        db.add_all([dogs, birds])
        db.flush()
        rows = {
            "salmon": Product(category_id=dogs.id, name="Salmon Dog Food", price=Decimal("59.99")),
            "wet": Product(category_id=dogs.id, name="Wet Dog Food", price=Decimal("29.99")),
            "cage": Product(category_id=birds.id, name="Bird Cage", price=Decimal("45.99")),
        }
        db.add_all(rows.values())
        db.commit()
        ids = {key: p.id for key, p in rows.items()}
        ids["dog_category"] = dogs.id
        ids["bird_category"] = birds.id
        return ids


def register(auth, email="jane.doe@example.com", password="Secret1"):
    result = auth.register("Jane Doe Smith", email, "0123456789", "12 Main Street", password)
    assert result.ok, result.message
    return result.value


@pytest.fixture
def customer_id(auth):
    return register(auth)

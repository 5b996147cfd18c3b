from decimal import Decimal

import pytest

from petshop.errors import ErrorKind, ShopError
from petshop.models.cart import CartItem
from petshop.models.customer import Customer
from petshop.models.log import Log
from petshop.models.order import Order, OrderItem
from petshop.schemas.user import RegistrationForm
from petshop.services import AuthService
from petshop.utils.hashing import get_password_hash
from petshop.utils.session_store import DeviceSession, PreferenceStore

from conftest import SECRET, register


def _count(store, model, *criteria):
    with store.session() as db:
        return db.query(model).filter(*criteria).count()


class TestRegister:
    def test_register_creates_customer_and_logs_in(self, store, auth):
        customer_id = register(auth)

        assert auth.is_logged_in()
        assert auth.get_current_user_id() == customer_id
        with store.session() as db:
            customer = db.get(Customer, customer_id)
            assert customer.email == "jane.doe@example.com"
            assert customer.password_hash == get_password_hash("Secret1")

    def test_duplicate_email_is_rejected(self, store, auth):
        register(auth)
        result = auth.register("Someone Else Entirely", "jane.doe@example.com", "9876543210", "Elm Road", "Other1")

        assert not result.ok
        assert result.error is ErrorKind.DUPLICATE_EMAIL
        assert _count(store, Customer, Customer.email == "jane.doe@example.com") == 1

    def test_register_trims_email(self, auth):
        register(auth, email="  padded@example.com ")
        assert auth.get_current_user().email == "padded@example.com"

    def test_register_form(self, auth):
        form = RegistrationForm(
            name="Jane Doe Smith", email="form@example.com", phone="0123456789",
            address="12 Main Street", password="Secret1", confirm_password="Secret1",
        )
        result = auth.register_form(form)
        assert result.ok
        assert auth.get_current_user().email == "form@example.com"

    def test_register_writes_audit_log(self, store, auth):
        customer_id = register(auth)
        assert _count(store, Log, Log.action == "REGISTER", Log.customer_id == customer_id) == 1


class TestLogin:
    def test_login_success_sets_session(self, auth, customer_id):
        auth.logout()
        result = auth.login("jane.doe@example.com", "Secret1")

        assert result.ok
        assert result.value.id == customer_id
        assert auth.get_current_user_id() == customer_id

    def test_unknown_email(self, auth):
        result = auth.login("nobody@example.com", "Secret1")
        assert result.error is ErrorKind.EMAIL_NOT_FOUND
        assert not auth.is_logged_in()

    def test_wrong_password_leaves_session_untouched(self, auth, customer_id):
        auth.logout()
        result = auth.login("jane.doe@example.com", "Wrong1")

        assert result.error is ErrorKind.INVALID_PASSWORD
        assert not auth.is_logged_in()

    def test_wrong_password_keeps_other_login(self, auth, customer_id):
        other_id = register(auth, email="other@example.com", password="Other1")
        assert auth.get_current_user_id() == other_id

        result = auth.login("jane.doe@example.com", "Wrong1")
        assert result.error is ErrorKind.INVALID_PASSWORD
        assert auth.get_current_user_id() == other_id

    def test_unwrap_raises_shop_error(self, auth):
        with pytest.raises(ShopError) as exc:
            auth.login("nobody@example.com", "x").unwrap()
        assert exc.value.kind is ErrorKind.EMAIL_NOT_FOUND


class TestSession:
    def test_logout_is_idempotent(self, auth, customer_id):
        auth.logout()
        auth.logout()
        assert not auth.is_logged_in()
        assert auth.get_current_user_id() is None
        assert auth.get_current_user() is None

    def test_session_survives_restart(self, store, prefs_path, customer_id):
        restarted = AuthService(store, DeviceSession(PreferenceStore(prefs_path), secret_key=SECRET))
        assert restarted.get_current_user().id == customer_id

    def test_current_user_none_when_customer_deleted(self, store, auth, customer_id):
        with store.session() as db:
            db.delete(db.get(Customer, customer_id))
            db.commit()

        assert auth.get_current_user_id() == customer_id
        assert auth.get_current_user() is None


class TestChangePassword:
    def test_not_logged_in(self, auth, customer_id):
        auth.logout()
        assert auth.change_password("Secret1", "Newpass1").error is ErrorKind.NOT_LOGGED_IN

    def test_wrong_current_password(self, auth, customer_id):
        assert auth.change_password("Wrong1", "Newpass1").error is ErrorKind.INVALID_PASSWORD
        auth.logout()
        assert auth.login("jane.doe@example.com", "Secret1").ok

    def test_user_not_found(self, store, auth, customer_id):
        with store.session() as db:
            db.delete(db.get(Customer, customer_id))
            db.commit()
        assert auth.change_password("Secret1", "Newpass1").error is ErrorKind.USER_NOT_FOUND

    def test_success(self, auth, customer_id):
        assert auth.change_password("Secret1", "Newpass1").ok
        auth.logout()
        assert auth.login("jane.doe@example.com", "Secret1").error is ErrorKind.INVALID_PASSWORD
        assert auth.login("jane.doe@example.com", "Newpass1").ok


class TestDeleteAccount:
    def test_not_logged_in(self, auth):
        assert auth.delete_account("Secret1").error is ErrorKind.NOT_LOGGED_IN

    def test_wrong_password_keeps_account(self, store, auth, customer_id):
        assert auth.delete_account("Wrong1").error is ErrorKind.INVALID_PASSWORD
        assert _count(store, Customer, Customer.id == customer_id) == 1
        assert auth.is_logged_in()

    def test_cascades_to_cart_and_orders(self, store, auth, cart, orders, products, customer_id):
        cart.add_to_cart(customer_id, products["salmon"], 1)
        lines = cart.cart_with_products(customer_id)
        order_id = orders.create_order_from_cart(customer_id, "12 Main Street", "Card", None, lines).value
        cart.add_to_cart(customer_id, products["wet"], 2)

        result = auth.delete_account("Secret1")

        assert result.ok
        assert not auth.is_logged_in()
        assert _count(store, Customer, Customer.id == customer_id) == 0
        assert _count(store, CartItem, CartItem.customer_id == customer_id) == 0
        assert _count(store, Order, Order.customer_id == customer_id) == 0
        assert _count(store, OrderItem, OrderItem.order_id == order_id) == 0

    def test_other_customers_untouched(self, store, auth, cart, products, customer_id):
        cart.add_to_cart(customer_id, products["salmon"], 1)
        other_id = register(auth, email="other@example.com", password="Other1")
        cart.add_to_cart(other_id, products["salmon"], 3)

        assert auth.delete_account("Other1").ok
        assert cart.cart_total(customer_id) == Decimal("59.99")


class TestStorageFailure:
    def test_register_reports_storage_error(self, store, auth):
        from petshop.database import Base

        Base.metadata.drop_all(store.engine)
        result = auth.register("Jane Doe Smith", "x@example.com", "0123456789", "12 Main Street", "Secret1")
        assert result.error is ErrorKind.STORAGE_ERROR
        assert not auth.is_logged_in()

    def test_register_reports_unwritable_session(self, store, auth, monkeypatch):
        def fail(*args, **kwargs):
            raise OSError("read-only file system")

        monkeypatch.setattr(PreferenceStore, "put", fail)
        result = auth.register("Jane Doe Smith", "ro@example.com", "0123456789", "12 Main Street", "Secret1")

        assert result.error is ErrorKind.STORAGE_ERROR
        assert not auth.is_logged_in()
        with store.session() as db:
            assert db.query(Customer).filter(Customer.email == "ro@example.com").count() == 1

    def test_login_reports_unwritable_session(self, auth, customer_id, monkeypatch):
        auth.logout()

        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(PreferenceStore, "put", fail)
        result = auth.login("jane.doe@example.com", "Secret1")

        assert result.error is ErrorKind.STORAGE_ERROR
        assert not auth.is_logged_in()

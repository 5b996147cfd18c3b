# petshop/services/auth.py
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from petshop.database import Store
from petshop.errors import ErrorKind, Result
from petshop.models.customer import Customer
from petshop.schemas.user import CustomerOut, RegistrationForm
from petshop.utils.audit import write_log
from petshop.utils.hashing import get_password_hash, verify_password
from petshop.utils.session_store import DeviceSession

logger = logging.getLogger(__name__)


class AuthService:
    """Registration, login and account lifecycle against the customers table.

    Every mutating call commits before returning and reports its outcome as a
    ``Result``; nothing here retries.
    """

    def __init__(self, store: Store, session: DeviceSession):
        self.store = store
        self.session = session

    # ---- SESSION READS ----
    def is_logged_in(self) -> bool:
        return self.session.is_logged_in

    def get_current_user_id(self) -> Optional[int]:
        return self.session.customer_id

    def get_current_user(self) -> Optional[CustomerOut]:
        customer_id = self.session.customer_id
        if customer_id is None:
            return None

        def query(db):
            customer = db.get(Customer, customer_id)
            return CustomerOut.model_validate(customer) if customer else None

        return self.store.read(query)

    # ---- REGISTRATION ----
    def register(self, name: str, email: str, phone: str, address: str, password: str) -> Result:
        normalized_email = email.strip()
        with self.store.session() as db:
            try:
                if db.query(Customer).filter(Customer.email == normalized_email).first():
                    write_log(db, customer_id=None, action="REGISTER", resource="auth", status="FAIL",
                              meta={"email": normalized_email, "reason": "Email exists"})
                    return Result.failure(ErrorKind.DUPLICATE_EMAIL, "Email already exists")

                customer = Customer(
                    name=name, email=normalized_email, phone=phone, address=address,
                    password_hash=get_password_hash(password),
                )
                db.add(customer)
                db.commit()
            except IntegrityError:
                # Lost a race with another registration for the same email
                db.rollback()
                return Result.failure(ErrorKind.DUPLICATE_EMAIL, "Email already exists")
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Registration failed for %s: %s", normalized_email, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))

            try:
                self.session.login(customer.id)
            except OSError as e:
                logger.error("Registered customer %s but could not save the session: %s", customer.id, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))
            write_log(db, customer_id=customer.id, action="REGISTER", resource="auth",
                      meta={"email": customer.email})
            logger.info("Registered customer %s", customer.id)
            return Result.success(customer.id)

    def register_form(self, form: RegistrationForm) -> Result:
        return self.register(form.name, str(form.email), form.phone, form.address, form.password)

    # ---- LOGIN / LOGOUT ----
    def login(self, email: str, password: str) -> Result:
        normalized_email = email.strip()
        with self.store.session() as db:
            try:
                customer = db.query(Customer).filter(Customer.email == normalized_email).first()
                if customer is None:
                    write_log(db, customer_id=None, action="LOGIN", resource="auth", status="FAIL",
                              meta={"email": normalized_email, "reason": "Email not found"})
                    return Result.failure(ErrorKind.EMAIL_NOT_FOUND, "Email not found")

                if not verify_password(password, customer.password_hash):
                    write_log(db, customer_id=customer.id, action="LOGIN", resource="auth", status="FAIL",
                              meta={"email": normalized_email, "reason": "Invalid password"})
                    return Result.failure(ErrorKind.INVALID_PASSWORD, "Invalid password")

                out = CustomerOut.model_validate(customer)
                self.session.login(customer.id)
                write_log(db, customer_id=customer.id, action="LOGIN", resource="auth",
                          meta={"email": customer.email})
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Login failed for %s: %s", normalized_email, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))
            except OSError as e:
                logger.error("Could not save session for %s: %s", normalized_email, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))
            return Result.success(out)

    def logout(self):
        self.session.logout()

    # ---- ACCOUNT CHANGES ----
    def _load_current(self, db):
        customer_id = self.session.customer_id
        if customer_id is None:
            return None, Result.failure(ErrorKind.NOT_LOGGED_IN, "Not logged in")
        customer = db.get(Customer, customer_id)
        if customer is None:
            return None, Result.failure(ErrorKind.USER_NOT_FOUND, "User not found")
        return customer, None

    def change_password(self, current_password: str, new_password: str) -> Result:
        with self.store.session() as db:
            try:
                customer, failure = self._load_current(db)
                if failure:
                    return failure

                if not verify_password(current_password, customer.password_hash):
                    write_log(db, customer_id=customer.id, action="PASSWORD_CHANGE", resource="auth",
                              status="FAIL", meta={"reason": "Invalid password"})
                    return Result.failure(ErrorKind.INVALID_PASSWORD, "Current password is incorrect")

                customer.password_hash = get_password_hash(new_password)
                db.commit()
                write_log(db, customer_id=customer.id, action="PASSWORD_CHANGE", resource="auth")
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Password change failed: %s", e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))
            return Result.success()

    def delete_account(self, password: str) -> Result:
        with self.store.session() as db:
            try:
                customer, failure = self._load_current(db)
                if failure:
                    return failure

                if not verify_password(password, customer.password_hash):
                    write_log(db, customer_id=customer.id, action="ACCOUNT_DELETE", resource="auth",
                              status="FAIL", meta={"reason": "Invalid password"})
                    return Result.failure(ErrorKind.INVALID_PASSWORD, "Password is incorrect")

                customer_id = customer.id
                # Cart lines and orders go with the customer (ON DELETE CASCADE)
                db.delete(customer)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Account deletion failed: %s", e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))

            try:
                self.session.logout()
            except OSError as e:
                logger.error("Deleted customer %s but could not clear the session: %s", customer_id, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))
            write_log(db, customer_id=None, action="ACCOUNT_DELETE", resource="auth",
                      meta={"customer_id": customer_id})
            logger.info("Deleted customer %s", customer_id)
            return Result.success()

# petshop/services/account.py
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from petshop.database import Store
from petshop.errors import ErrorKind, Result
from petshop.models.customer import Customer
from petshop.schemas.user import CustomerOut, ProfileUpdate
from petshop.utils.audit import write_log
from petshop.utils.images import save_profile_image
from petshop.utils.session_store import DeviceSession

logger = logging.getLogger(__name__)


class AccountService:
    """Profile edits for the logged-in customer."""

    def __init__(self, store: Store, session: DeviceSession, images_dir):
        self.store = store
        self.session = session
        self.images_dir = images_dir

    def update_profile(self, name: str, email: str, phone: str, address: str,
                       profile_image_path=None) -> Result:
        customer_id = self.session.customer_id
        if customer_id is None:
            return Result.failure(ErrorKind.NOT_LOGGED_IN, "Not logged in")

        update = ProfileUpdate(name=name, email=email.strip(), phone=phone, address=address,
                               profile_image_path=profile_image_path)

        with self.store.session() as db:
            try:
                customer = db.get(Customer, customer_id)
                if customer is None:
                    return Result.failure(ErrorKind.USER_NOT_FOUND, "User not found")

                taken = (
                    db.query(Customer)
                    .filter(Customer.email == update.email, Customer.id != customer_id)
                    .first()
                )
                if taken:
                    return Result.failure(ErrorKind.DUPLICATE_EMAIL, "Email already exists")

                for field, value in update.model_dump(exclude_none=True).items():
                    setattr(customer, field, value)
                db.commit()
            except IntegrityError:
                db.rollback()
                return Result.failure(ErrorKind.DUPLICATE_EMAIL, "Email already exists")
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Profile update failed for customer %s: %s", customer_id, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))

            out = CustomerOut.model_validate(customer)
            write_log(db, customer_id=customer_id, action="PROFILE_UPDATE", resource="account",
                      meta={"email": out.email})
            return Result.success(out)

    def set_profile_image(self, source) -> Result:
        """Copy the picked image into app storage and record its path."""
        customer_id = self.session.customer_id
        if customer_id is None:
            return Result.failure(ErrorKind.NOT_LOGGED_IN, "Not logged in")

        try:
            path = save_profile_image(source, self.images_dir)
        except (OSError, ValueError) as e:
            logger.warning("Failed to save image for customer %s: %s", customer_id, e)
            return Result.failure(ErrorKind.STORAGE_ERROR, f"Failed to save image: {e}")

        with self.store.session() as db:
            try:
                customer = db.get(Customer, customer_id)
                if customer is None:
                    return Result.failure(ErrorKind.USER_NOT_FOUND, "User not found")
                customer.profile_image_path = path
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Saving image path failed for customer %s: %s", customer_id, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))
        return Result.success(path)

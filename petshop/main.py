# petshop/main.py
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from petshop.config import Settings
from petshop.database import Store
from petshop.populate_db import seed_catalog
from petshop.services import AccountService, AuthService, CartService, CatalogService, OrderService
from petshop.utils.log_config import configure_logging
from petshop.utils.session_store import DeviceSession, PreferenceStore

logger = logging.getLogger(__name__)


@dataclass
class ShopApp:
    settings: Settings
    store: Store
    session: DeviceSession
    auth: AuthService
    catalog: CatalogService
    cart: CartService
    orders: OrderService
    account: AccountService

    def close(self):
        self.store.dispose()


def build_app(settings: Optional[Settings] = None) -> ShopApp:
    """Composition root: build the store once and hand it to every service."""
    if settings is None:
        load_dotenv()
        settings = Settings()

    configure_logging(settings.LOG_LEVEL)

    store = Store(settings.DATABASE_URL)
    store.init_db()
    if settings.SEED_ON_STARTUP:
        seed_catalog(store)

    # Restores whoever was logged in before the last shutdown
    session = DeviceSession(
        PreferenceStore(settings.SESSION_FILE),
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expire_minutes=settings.SESSION_EXPIRE_MINUTES,
    )

    cart = CartService(store)
    app = ShopApp(
        settings=settings,
        store=store,
        session=session,
        auth=AuthService(store, session),
        catalog=CatalogService(store),
        cart=cart,
        orders=OrderService(store, cart, strict_status=settings.STRICT_ORDER_STATUS),
        account=AccountService(store, session, settings.PROFILE_IMAGES_DIR),
    )
    logger.info("Pet shop ready (logged in: %s)", session.is_logged_in)
    return app

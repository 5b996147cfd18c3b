from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from petshop.database import Base, Store
from petshop.services import AuthService

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


def _alembic_config(url):
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg


def test_upgrade_creates_every_model_table(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    command.upgrade(_alembic_config(url), "head")

    store = Store(url)
    try:
        tables = set(inspect(store.engine).get_table_names())
        assert set(Base.metadata.tables) <= tables
    finally:
        store.dispose()


def test_migrated_schema_is_usable(tmp_path, device_session):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    command.upgrade(_alembic_config(url), "head")

    store = Store(url)
    try:
        auth = AuthService(store, device_session)
        assert auth.register("Jane Doe Smith", "jane@example.com", "0123456789", "12 Main Street", "Secret1").ok
        assert auth.get_current_user().email == "jane@example.com"
    finally:
        store.dispose()


def test_downgrade_removes_tables(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    cfg = _alembic_config(url)
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    store = Store(url)
    try:
        assert "customers" not in inspect(store.engine).get_table_names()
    finally:
        store.dispose()

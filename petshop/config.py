# petshop/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./petshop.db"

    # Device-local session storage
    SESSION_FILE: str = "./petshop_prefs.json"
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    SESSION_EXPIRE_MINUTES: Optional[int] = None

    PROFILE_IMAGES_DIR: str = "./profile_images"

    SEED_ON_STARTUP: bool = True
    # Reject order status changes that skip or reverse the lifecycle
    STRICT_ORDER_STATUS: bool = False

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

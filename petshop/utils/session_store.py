# petshop/utils/session_store.py
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional

from petshop.utils.tokenJWT import create_session_token, decode_session_token

logger = logging.getLogger(__name__)

KEY_LOGGED_IN_USER_ID = "logged_in_user_id"


class PreferenceStore:
    """Small durable key-value file (JSON), the device's shared preferences."""

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._load().get(key, default)

    def put(self, key: str, value: Any):
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def remove(self, key: str):
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)


class DeviceSession:
    """Which customer is logged in on this device.

    Created once at startup from the preferences file, so a login survives a
    restart. ``logout()`` is the teardown and is safe to repeat.
    """

    def __init__(self, prefs: PreferenceStore, secret_key: str, algorithm: str = "HS256",
                 expire_minutes: Optional[int] = None):
        self.prefs = prefs
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @property
    def customer_id(self) -> Optional[int]:
        token = self.prefs.get(KEY_LOGGED_IN_USER_ID)
        if not token:
            return None
        if not isinstance(token, str):
            logger.warning("Ignoring non-token session value of type %s", type(token).__name__)
            return None
        return decode_session_token(token, self.secret_key, self.algorithm)

    @property
    def is_logged_in(self) -> bool:
        return self.customer_id is not None

    def login(self, customer_id: int):
        token = create_session_token(customer_id, self.secret_key, self.algorithm, self.expire_minutes)
        self.prefs.put(KEY_LOGGED_IN_USER_ID, token)

    def logout(self):
        self.prefs.remove(KEY_LOGGED_IN_USER_ID)

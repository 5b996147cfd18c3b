# utils/tokenJWT.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

logger = logging.getLogger(__name__)


# Sign the logged-in customer id so the session file cannot be edited by hand
def create_session_token(customer_id: int, secret_key: str, algorithm: str = "HS256",
                         expire_minutes: Optional[int] = None) -> str:
    to_encode = {"sub": str(customer_id), "iat": datetime.now(timezone.utc)}
    if expire_minutes:
        to_encode["exp"] = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


# Return the customer id carried by a session token, or None if it is not valid
def decode_session_token(token: str, secret_key: str, algorithm: str = "HS256") -> Optional[int]:
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError as e:
        logger.warning("Rejected stored session token: %s", e)
        return None

    sub = payload.get("sub")
    if sub is None or not str(sub).isdigit():
        return None
    return int(sub)

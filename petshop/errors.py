# petshop/errors.py
import enum
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


# Failure kinds surfaced to callers of the services
class ErrorKind(str, enum.Enum):
    DUPLICATE_EMAIL = "DuplicateEmail"
    EMAIL_NOT_FOUND = "EmailNotFound"
    INVALID_PASSWORD = "InvalidPassword"
    NOT_LOGGED_IN = "NotLoggedIn"
    USER_NOT_FOUND = "UserNotFound"
    EMPTY_CART = "EmptyCart"
    STORAGE_ERROR = "StorageError"
    ORDER_NOT_FOUND = "OrderNotFound"
    INVALID_STATUS_TRANSITION = "InvalidStatusTransition"


class ShopError(Exception):
    def __init__(self, kind: ErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or kind.value
        super().__init__(self.message)


# Raised by read paths when the underlying store fails
class StorageError(ShopError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(ErrorKind.STORAGE_ERROR, message)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Tagged outcome of a mutating operation.

    Callers branch on ``ok`` (or ``error``) instead of catching exceptions.
    ``unwrap()`` is available for code paths that prefer raising.
    """

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: Optional[str] = None) -> "Result":
        return cls(error=kind, message=message or kind.value)

    def unwrap(self) -> T:
        if self.error is not None:
            raise ShopError(self.error, self.message)
        return self.value

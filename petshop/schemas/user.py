# petshop/schemas/user.py
from typing import Dict, Optional

from pydantic import BaseModel, EmailStr, ValidationError, ValidationInfo, field_validator

from petshop.schemas.product import ORMBase


# Customer record without the password hash
class CustomerOut(ORMBase):
    id: int
    name: str
    email: str
    phone: str
    address: str
    profile_image_path: Optional[str] = None


# Editable profile fields
class ProfileUpdate(BaseModel):
    name: str
    email: str
    phone: str
    address: str
    profile_image_path: Optional[str] = None


class RegistrationForm(BaseModel):
    """Sign-up form as entered on the registration screen.

    Format and length rules live here rather than in the auth service, which
    only enforces email uniqueness.
    """

    name: str
    email: EmailStr
    phone: str
    address: str
    password: str
    confirm_password: str

    @field_validator("name")
    @classmethod
    def name_long_enough(cls, value: str) -> str:
        if len(value) < 10:
            raise ValueError("Full name must be at least 10 characters")
        return value

    @field_validator("phone")
    @classmethod
    def phone_long_enough(cls, value: str) -> str:
        if len(value) < 10:
            raise ValueError("Phone number must be at least 10 characters")
        return value

    @field_validator("address")
    @classmethod
    def address_long_enough(cls, value: str) -> str:
        if len(value) < 5:
            raise ValueError("Address must be at least 5 characters")
        return value

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if len(value) < 5:
            raise ValueError("Password must be at least 5 characters")
        if not any(c.isupper() for c in value):
            raise ValueError("Password must contain at least one uppercase letter")
        if not any(c.islower() for c in value):
            raise ValueError("Password must contain at least one lowercase letter")
        return value

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if "password" in info.data and value != info.data["password"]:
            raise ValueError("Passwords don't match")
        return value


# Messages for failures raised by pydantic itself rather than our validators
FIELD_MESSAGES = {
    "email": "Please enter a valid email address",
}


def form_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "form"
        if err["type"] == "value_error" and "error" in err.get("ctx", {}):
            message = str(err["ctx"]["error"])
        else:
            message = FIELD_MESSAGES.get(field, err["msg"])
        errors.setdefault(field, message)
    return errors


def validate_registration(**fields) -> Dict[str, str]:
    """Return a mapping of field name to error message; empty when valid."""
    try:
        RegistrationForm(**fields)
    except ValidationError as e:
        return form_errors(e)
    return {}

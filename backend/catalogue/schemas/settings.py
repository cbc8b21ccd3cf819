# backend/catalogue/schemas/settings.py
from pydantic import BaseModel, field_validator

from .order import EMAIL_PATTERN


class RecipientEmail(BaseModel):
    recipient_email: str

    @field_validator("recipient_email")
    @classmethod
    def valid_email(cls, value: str) -> str:
        value = value.strip()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("must be a valid e-mail address")
        return value

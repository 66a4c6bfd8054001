from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from tasktrail.schemas.task import CAMEL_CONFIG

PASSWORD_MAX_BYTES = 72


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def password_max_bytes(cls, v: str) -> str:
        """Ensure password does not exceed bcrypt's 72-byte limit when UTF-8 encoded.

        Raise a validation error so API returns a 422 with a clear message.
        """
        if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
        return v

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    email: EmailStr
    name: str
    created_at: datetime


class TokenOut(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserOut

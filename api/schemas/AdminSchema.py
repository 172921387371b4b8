from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


class AdminLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value)


class AdminChangePassword(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    old_password: str = Field(..., min_length=1, alias="oldPassword")
    new_password: str = Field(..., min_length=6, alias="newPassword")


class AdminUpdateCredentials(BaseModel):
    """Either field may be omitted, but not both (checked in the router)."""

    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return normalize_email(value)

    @field_validator("password", mode="before")
    @classmethod
    def blank_password(cls, value):
        if isinstance(value, str) and value == "":
            return None
        return value


class EmailOtpRequest(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value)


class EmailOtpVerify(BaseModel):
    email: EmailStr
    otp: str = Field(..., pattern=r"^\d{6}$")

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value)

    @field_validator("otp", mode="before")
    @classmethod
    def strip_otp(cls, value):
        return value.strip() if isinstance(value, str) else value

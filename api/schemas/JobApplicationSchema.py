from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, field_validator


class JobApplication(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    job_title: str = Field(..., min_length=2)
    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: Optional[str] = None
    linkedin_url: Optional[HttpUrl] = None
    portfolio_url: Optional[HttpUrl] = None
    cover_letter: Optional[str] = None

    @field_validator("phone", "linkedin_url", "portfolio_url", "cover_letter", mode="before")
    @classmethod
    def empty_to_none(cls, value):
        # Form fields left blank arrive as ""
        if isinstance(value, str) and not value.strip():
            return None
        return value

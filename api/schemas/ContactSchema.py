from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ContactSubmission(BaseModel):
    """Contact form payload. Emailed to staff, never stored."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2)
    email: EmailStr
    service: str = Field(..., min_length=2)
    message: str = Field(..., min_length=10)
    phone: Optional[str] = None

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class InquirySubmission(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: Optional[str] = None
    company: Optional[str] = None
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    service: Optional[str] = None

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

ENQUIRY_STATUSES = ("NEW", "CONTACTED", "CLOSED")
PLACEHOLDER_PG_IDS = {"floating-drawer", "navbar-modal", "elite-hub", "general-inquiry"}


class EnquiryCreate(BaseModel):
    pgId: Optional[str] = Field(default=None, min_length=1)
    name: str = Field(min_length=2, max_length=100)
    phone: str = Field(pattern=r"^[6-9]\d{9}$")
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    occupation: str = Field(min_length=1)
    roomType: str = Field(min_length=1)
    moveInDate: datetime
    message: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("moveInDate", mode="before")
    @classmethod
    def _date_only(cls, v):
        # Forms post plain dates ("2026-11-01").
        if isinstance(v, str) and len(v) == 10:
            try:
                return datetime.combine(date.fromisoformat(v), datetime.min.time())
            except ValueError:
                return v
        return v


class EnquiryStatusPayload(BaseModel):
    status: str


class PropertyCreate(BaseModel):
    id: Optional[str] = Field(default=None, pattern=r"^[a-zA-Z0-9][a-zA-Z0-9_-]{0,63}$")
    slug: str = Field(pattern=r"^[a-z0-9][a-z0-9-]{0,79}$")
    name: str = Field(min_length=2, max_length=120)
    city: str = Field(default="", max_length=80)

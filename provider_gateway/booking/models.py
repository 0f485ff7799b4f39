# provider_gateway/booking/models.py
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DATE_FORMAT = "%Y-%m-%d"
MAX_CUSTOMER_NAME = 100


# --------------------------------------------------------------------
# Booksy business payloads
# --------------------------------------------------------------------
class Location(BaseModel):
    model_config = ConfigDict(extra="ignore")

    address: str = ""
    city: str = ""
    zipcode: str = ""


class Business(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    official_name: Optional[str] = None
    active: bool = False
    phone: str = ""
    pos_enabled: bool = False
    status: str = ""
    location: Location = Field(default_factory=Location)


class BusinessResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    businesses: List[Business] = Field(default_factory=list)
    businesses_per_page: int = 0
    businesses_count: int = 0


# --------------------------------------------------------------------
# Dashboard request body
# --------------------------------------------------------------------
def _parse_date(value: str) -> Optional[date]:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        return None


class AppointmentRequest(BaseModel):
    """POST /api/appointments/list body; dates are `YYYY-MM-DD` strings."""

    model_config = ConfigDict(populate_by_name=True)

    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    customer_name: Optional[str] = Field(default=None, alias="customerName")

    @field_validator("start_date")
    @classmethod
    def check_start_date(cls, value: str) -> str:
        if _parse_date(value) is None:
            raise ValueError("Start date must be in YYYY-MM-DD format.")
        return value

    @field_validator("end_date")
    @classmethod
    def check_end_date(cls, value: str) -> str:
        if _parse_date(value) is None:
            raise ValueError("End date must be in YYYY-MM-DD format.")
        return value

    @field_validator("customer_name")
    @classmethod
    def check_customer_name(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) > MAX_CUSTOMER_NAME:
            raise ValueError(f"Customer name cannot exceed {MAX_CUSTOMER_NAME} characters.")
        return value

    @model_validator(mode="after")
    def check_range(self) -> "AppointmentRequest":
        if self.start > self.end:
            raise ValueError("Start date must be before the end date.")
        return self

    @property
    def start(self) -> date:
        return datetime.strptime(self.start_date, DATE_FORMAT).date()

    @property
    def end(self) -> date:
        return datetime.strptime(self.end_date, DATE_FORMAT).date()

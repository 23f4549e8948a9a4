"""
Pydantic schemas for reservation request/response validation.
"""

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from coworking.db.base import MAX_INTEGER_ID

ReservationStatus = Literal["active", "cancelled"]


class ReservationCreate(BaseModel):
    office_id: int = Field(gt=0, le=MAX_INTEGER_ID)
    start_date: date
    end_date: date


class ReservationFilter(BaseModel):
    """Listing filters. `user_id` scopes to a visitor, `host_id` to a host's offices."""

    user_id: Optional[int] = None
    host_id: Optional[int] = None
    office_id: Optional[int] = None
    status: Optional[ReservationStatus] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None


class OfficeSummary(BaseModel):
    id: int
    title: str

    model_config = {"from_attributes": True}


class ReservationResponse(BaseModel):
    id: int
    user_id: int
    office_id: int
    start_date: date
    end_date: date
    status: str
    price: int
    created_at: datetime
    office: OfficeSummary

    model_config = {"from_attributes": True}


class VisitorReservationResponse(ReservationResponse):
    wifi_password: str


class ReservationListResponse(BaseModel):
    reservations: list[VisitorReservationResponse]
    total: int
    page: int
    page_size: int


class HostReservationListResponse(BaseModel):
    reservations: list[ReservationResponse]
    total: int
    page: int
    page_size: int


class ErrorResponse(BaseModel):
    message: str
    code: str
    errors: dict[str, list[str]] = Field(default_factory=dict)

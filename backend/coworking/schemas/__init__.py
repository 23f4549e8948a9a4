from coworking.schemas.reservation import (
    OfficeSummary,
    ReservationCreate,
    ReservationFilter,
    ReservationResponse,
    VisitorReservationResponse,
    ReservationListResponse,
    HostReservationListResponse,
    ErrorResponse,
)

__all__ = [
    "OfficeSummary", "ReservationCreate", "ReservationFilter",
    "ReservationResponse", "VisitorReservationResponse",
    "ReservationListResponse", "HostReservationListResponse",
    "ErrorResponse",
]

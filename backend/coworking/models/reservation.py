"""
Reservation model: a visitor's stay in an office over an inclusive date range.

Key design decisions:
- Status flips active -> cancelled; rows are never deleted
- Price is stored at creation and never recomputed
- Composite index serves the overlap check (office, status, date range)
"""

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from coworking.db.base import Base, TimestampMixin


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    STATUS_ACTIVE = "active"
    STATUS_CANCELLED = "cancelled"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    office_id = Column(Integer, ForeignKey("offices.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE)
    price = Column(Integer, nullable=False)
    wifi_password = Column(String(64), nullable=False)

    office = relationship("Office", lazy="selectin")

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="check_reservation_date_order"),
        CheckConstraint("price >= 0", name="check_reservation_price_non_negative"),
        CheckConstraint("status IN ('active', 'cancelled')", name="check_reservation_status"),
        Index("ix_reservations_office_overlap", "office_id", "status", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, office={self.office_id}, user={self.user_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status})>"
        )

"""
Office model: the bookable space a host lists.

The reservation core only reads pricing, ownership, visibility and approval.
Host identities come from the external identity provider, so `owner_id`
is a plain indexed integer rather than a foreign key.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String

from coworking.db.base import Base, TimestampMixin


class Office(Base, TimestampMixin):
    __tablename__ = "offices"

    APPROVAL_PENDING = "pending"
    APPROVAL_APPROVED = "approved"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    price_per_day = Column(Integer, nullable=False)  # minor currency units
    monthly_discount = Column(Integer, nullable=False, default=0)  # percent, stays >= 28 days
    is_hidden = Column(Boolean, nullable=False, default=False)
    approval_status = Column(String(20), nullable=False, default=APPROVAL_PENDING)

    __table_args__ = (
        CheckConstraint("price_per_day > 0", name="check_office_price_positive"),
        CheckConstraint(
            "monthly_discount >= 0 AND monthly_discount <= 90",
            name="check_office_monthly_discount_range",
        ),
        CheckConstraint(
            "approval_status IN ('pending', 'approved')", name="check_office_approval_status"
        ),
    )

    @property
    def is_bookable(self) -> bool:
        return not self.is_hidden and self.approval_status == self.APPROVAL_APPROVED

    def __repr__(self) -> str:
        return f"<Office(id={self.id}, owner={self.owner_id}, status={self.approval_status})>"

"""
Medicine Request Models

A request is one user's episode of asking for medicines. It owns its
line items; medicines are only referenced. Requests are never deleted,
CANCELLED is the terminal soft-delete.
"""

from sqlalchemy import (
    Column, Integer, DateTime, Text, Enum, ForeignKey,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from pharmadesk.infrastructure.database import Base


class RequestStatus(str, enum.Enum):
    """Medicine request status"""
    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    GIVEN = "GIVEN"
    CANCELLED = "CANCELLED"


class MedicineRequest(Base):
    """A user's request for one or more medicines"""
    __tablename__ = "medicine_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    status = Column(Enum(RequestStatus), nullable=False, default=RequestStatus.REQUESTED, index=True)

    requested_at = Column(DateTime, default=datetime.now)
    approved_at = Column(DateTime)
    given_at = Column(DateTime)
    cancelled_reason = Column(Text)

    created_at = Column(DateTime, default=datetime.now, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    user = relationship("User", back_populates="requests")
    items = relationship(
        "MedicineRequestItem",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="MedicineRequestItem.id"
    )

    def find_item(self, medicine_id: int):
        """Return the line item for a medicine, or None"""
        for item in self.items:
            if item.medicine_id == medicine_id:
                return item
        return None


class MedicineRequestItem(Base):
    """A (medicine, quantity) line item of a request"""
    __tablename__ = "medicine_request_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey("medicine_requests.id", ondelete="CASCADE"), nullable=False)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)

    request = relationship("MedicineRequest", back_populates="items")
    medicine = relationship("Medicine")

    __table_args__ = (
        CheckConstraint('quantity >= 0', name='check_request_item_quantity'),
        UniqueConstraint('request_id', 'medicine_id', name='uq_request_medicine'),
    )

from sqlalchemy import Column, String, Integer, DateTime, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from pharmadesk.infrastructure.database import Base


class UserStatus(str, enum.Enum):
    """Account status set by the admin approval flow"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DEACTIVE = "DEACTIVE"


class User(Base):
    """Mobile user who submits medicine requests"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    status = Column(Enum(UserStatus), nullable=False, default=UserStatus.PENDING)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    requests = relationship("MedicineRequest", back_populates="user")

    @property
    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED

"""
Medicine Catalog Models

Inventory rows consumed by the request workflow. Catalog CRUD lives
outside this service; only the stock column is written here.
"""

from sqlalchemy import (
    Column, String, Integer, Date, DateTime, Boolean, Text,
    ForeignKey, CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime

from pharmadesk.infrastructure.database import Base


class Medicine(Base):
    """Inventory item with a dispensable stock count"""
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    brand = Column(String(255), nullable=False)
    description = Column(Text)
    stock = Column(Integer, nullable=False, default=0)
    expiry_date = Column(Date)
    recommended = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    categories = relationship(
        "MedicineCategoryLink",
        back_populates="medicine",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint('stock >= 0', name='check_medicine_stock_non_negative'),
    )


class MedicineCategory(Base):
    """Catalog grouping shown in the mobile browser"""
    __tablename__ = "medicine_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.now)

    medicines = relationship("MedicineCategoryLink", back_populates="category")


class MedicineCategoryLink(Base):
    """Join row between medicines and categories"""
    __tablename__ = "medicine_category_links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, ForeignKey("medicine_categories.id", ondelete="CASCADE"), nullable=False)

    medicine = relationship("Medicine", back_populates="categories")
    category = relationship("MedicineCategory", back_populates="medicines")

    __table_args__ = (
        UniqueConstraint('medicine_id', 'category_id', name='uq_medicine_category'),
    )

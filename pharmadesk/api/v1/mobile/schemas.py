from pydantic import Field, field_validator
from typing import List
from datetime import datetime

from pharmadesk.core.config import settings
from pharmadesk.api.v1.requests.schemas import CamelModel


class RequestedMedicine(CamelModel):
    medicine_id: int = Field(..., ge=1)
    quantity: int = Field(0, ge=0)


class MedicineRequestCreate(CamelModel):
    """Schema for submitting a request from the mobile app"""
    user_id: int = Field(..., ge=1)
    reason: str = Field(..., min_length=1, max_length=1000)
    medicines: List[RequestedMedicine] = Field(
        ..., min_length=1, max_length=settings.MAX_ITEMS_PER_REQUEST
    )

    @field_validator("medicines")
    @classmethod
    def no_duplicate_medicines(cls, v: List[RequestedMedicine]) -> List[RequestedMedicine]:
        ids = [m.medicine_id for m in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Each medicine may appear only once per request")
        return v


class RequestLimitsResponse(CamelModel):
    """Current calendar month request activity"""
    start_date: datetime
    end_date: datetime
    current_count: int
    approved_count: int

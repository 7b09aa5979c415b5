"""
Medicine Request API Schemas

Pydantic models for request-related API requests and responses.
JSON fields are camelCase; Python attributes stay snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict
from datetime import datetime

from pharmadesk.domain.requests.models import RequestStatus
from pharmadesk.domain.users.models import UserStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


# ==================== Response Schemas ====================

class MedicineSummary(CamelModel):
    id: int
    name: str
    brand: str
    stock: int


class UserSummary(CamelModel):
    id: int
    username: str
    name: str
    status: UserStatus


class RequestItemResponse(CamelModel):
    id: int
    medicine_id: int
    quantity: int
    medicine: Optional[MedicineSummary] = None


class MedicineRequestResponse(CamelModel):
    """Schema for a request with its line items"""
    id: int
    user_id: int
    reason: str
    status: RequestStatus
    requested_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    given_at: Optional[datetime] = None
    cancelled_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None
    items: List[RequestItemResponse] = []


class MedicineRequestListResponse(CamelModel):
    requests: List[MedicineRequestResponse]
    total: int


class StatusSummaryResponse(CamelModel):
    """Per-status request counts for the dashboard"""
    totals: Dict[RequestStatus, int]
    today: Dict[RequestStatus, int]


class SuccessResponse(CamelModel):
    success: bool = True


# ==================== Input Schemas ====================

class StatusUpdateRequest(CamelModel):
    """Schema for changing a request's status"""
    status: RequestStatus
    cancelled_reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def require_cancel_reason(self) -> "StatusUpdateRequest":
        if self.status == RequestStatus.CANCELLED and not (self.cancelled_reason or "").strip():
            raise ValueError("cancelledReason is required when cancelling a request")
        return self


class QuantitiesUpdateRequest(CamelModel):
    """Schema for editing line item quantities, keyed by medicine ID"""
    quantities: Dict[int, int] = Field(..., min_length=1)

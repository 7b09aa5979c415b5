"""
Medicine Request API Routes

Admin endpoints for reviewing requests, moving them through their
lifecycle and editing quantities before approval.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from pharmadesk.api.deps import get_request_repository
from pharmadesk.domain.requests.models import RequestStatus
from pharmadesk.domain.requests.repository import MedicineRequestRepository
from pharmadesk.domain.requests.service import RequestLifecycleService, RequestQueryService
from pharmadesk.api.v1.requests.schemas import (
    MedicineRequestResponse, MedicineRequestListResponse, StatusSummaryResponse,
    StatusUpdateRequest, QuantitiesUpdateRequest, SuccessResponse
)

router = APIRouter()


@router.get("", response_model=MedicineRequestListResponse)
async def list_requests(
    status: Optional[RequestStatus] = None,
    search: Optional[str] = Query(None, max_length=255),
    skip: int = Query(0, ge=0),
    take: Optional[int] = Query(None, ge=1, le=100),
    repo: MedicineRequestRepository = Depends(get_request_repository)
):
    """List requests, newest first"""
    service = RequestQueryService(repo)
    requests, total = await service.list_requests(
        status=status, search=search, skip=skip, take=take
    )
    return MedicineRequestListResponse(
        requests=[MedicineRequestResponse.model_validate(r) for r in requests],
        total=total
    )


@router.get("/summary", response_model=StatusSummaryResponse)
async def get_status_summary(
    repo: MedicineRequestRepository = Depends(get_request_repository)
):
    """Request counts per status, overall and for today"""
    summary = await RequestQueryService(repo).get_status_summary()
    return StatusSummaryResponse(totals=summary.totals, today=summary.today)


@router.get("/{request_id}", response_model=MedicineRequestResponse)
async def get_request(
    request_id: int,
    repo: MedicineRequestRepository = Depends(get_request_repository)
):
    """Get a request with its items"""
    return await RequestQueryService(repo).get_request(request_id)


@router.patch("/{request_id}/status", response_model=MedicineRequestResponse)
async def update_request_status(
    request_id: int,
    status_in: StatusUpdateRequest,
    repo: MedicineRequestRepository = Depends(get_request_repository)
):
    """Change request status; GIVEN takes stock and cancelling a GIVEN request restores it"""
    service = RequestLifecycleService(repo)
    return await service.update_status(
        request_id,
        status_in.status,
        cancelled_reason=status_in.cancelled_reason
    )


@router.patch("/{request_id}/quantities", response_model=SuccessResponse)
async def update_request_quantities(
    request_id: int,
    quantities_in: QuantitiesUpdateRequest,
    repo: MedicineRequestRepository = Depends(get_request_repository)
):
    """Edit item quantities of a REQUESTED request"""
    service = RequestLifecycleService(repo)
    result = await service.update_quantities(request_id, quantities_in.quantities)
    return SuccessResponse(success=result["success"])

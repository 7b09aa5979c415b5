"""
Mobile API Routes

Endpoints used by the mobile app to submit medicine requests and check
the user's monthly activity.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List

from pharmadesk.api.deps import get_request_repository, get_user_service
from pharmadesk.domain.requests.repository import MedicineRequestRepository
from pharmadesk.domain.requests.service import (
    RequestLimitService, RequestQueryService, RequestSubmissionService
)
from pharmadesk.domain.users.service import UserService
from pharmadesk.api.v1.requests.schemas import MedicineRequestResponse
from pharmadesk.api.v1.mobile.schemas import MedicineRequestCreate, RequestLimitsResponse

router = APIRouter()


@router.post(
    "/medicine/requests",
    response_model=MedicineRequestResponse,
    status_code=status.HTTP_201_CREATED
)
async def submit_medicine_request(
    request_in: MedicineRequestCreate,
    repo: MedicineRequestRepository = Depends(get_request_repository),
    user_service: UserService = Depends(get_user_service)
):
    """Submit a new medicine request"""
    service = RequestSubmissionService(repo, user_service)
    return await service.submit(
        user_id=request_in.user_id,
        reason=request_in.reason,
        items=[(m.medicine_id, m.quantity) for m in request_in.medicines]
    )


@router.get("/medicine/requests", response_model=List[MedicineRequestResponse])
async def list_my_requests(
    user_id: int = Query(..., alias="userId", ge=1),
    repo: MedicineRequestRepository = Depends(get_request_repository),
    user_service: UserService = Depends(get_user_service)
):
    """Request history of one user"""
    user = await user_service.get_user(user_id)
    return await RequestQueryService(repo).list_user_requests(user.id)


@router.get("/medicine/request-limits", response_model=RequestLimitsResponse)
async def get_request_limits(
    user_id: int = Query(..., alias="userId", ge=1),
    repo: MedicineRequestRepository = Depends(get_request_repository),
    user_service: UserService = Depends(get_user_service)
):
    """This month's request counts for an approved user"""
    user = await user_service.get_approved_user(user_id)
    limits = await RequestLimitService(repo).get_request_limits(user.id)
    return RequestLimitsResponse(
        start_date=limits.start_date,
        end_date=limits.end_date,
        current_count=limits.current_count,
        approved_count=limits.approved_count
    )

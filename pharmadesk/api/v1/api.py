from fastapi import APIRouter
from pharmadesk.core.exceptions import ErrorResponse
from pharmadesk.api.v1.requests import routes as requests
from pharmadesk.api.v1.mobile import routes as mobile

api_router = APIRouter()
api_router.include_router(
    requests.router,
    prefix="/requests",
    tags=["requests"],
    responses={
        404: {"model": ErrorResponse, "description": "Request or line item not found"},
        409: {"model": ErrorResponse, "description": "Invalid status change or insufficient stock"},
    }
)
api_router.include_router(
    mobile.router,
    prefix="/mobile",
    tags=["mobile"],
    responses={
        403: {"model": ErrorResponse, "description": "User account not approved"},
        404: {"model": ErrorResponse, "description": "User or medicine not found"},
        429: {"model": ErrorResponse, "description": "Monthly request limit reached"},
    }
)

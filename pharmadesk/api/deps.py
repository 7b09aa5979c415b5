from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pharmadesk.infrastructure.database import get_db
from pharmadesk.domain.requests.repository import MedicineRequestRepository
from pharmadesk.domain.users.repository import UserRepository
from pharmadesk.domain.users.service import UserService


def get_request_repository(db: AsyncSession = Depends(get_db)) -> MedicineRequestRepository:
    return MedicineRequestRepository(db)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(UserRepository(db))

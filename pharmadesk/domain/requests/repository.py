"""
Medicine Request Repository

Transactional persistence handle for the request workflow. Services
receive an instance instead of reaching for a global session.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pharmadesk.domain.medicines.models import Medicine
from pharmadesk.domain.requests.models import (
    MedicineRequest, MedicineRequestItem, RequestStatus
)
from pharmadesk.domain.users.models import User


class MedicineRequestRepository:
    """Repository for medicine request data access operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def transaction(self):
        """Commit everything issued inside the block, or roll all of it back"""
        try:
            yield self
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    def _with_details(self):
        return select(MedicineRequest).options(
            selectinload(MedicineRequest.user),
            selectinload(MedicineRequest.items).selectinload(MedicineRequestItem.medicine),
        )

    async def get_request_with_items(self, request_id: int) -> Optional[MedicineRequest]:
        """Get request with its user, line items and each item's medicine"""
        result = await self.db.execute(
            self._with_details()
            .where(MedicineRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def save_request(self, request: MedicineRequest) -> MedicineRequest:
        """Flush pending changes on a loaded request"""
        self.db.add(request)
        await self.db.flush()
        return request

    async def create_request(
        self,
        user_id: int,
        reason: str,
        items: Iterable[Tuple[int, int]]
    ) -> MedicineRequest:
        """Create a REQUESTED request with its line items"""
        request = MedicineRequest(
            user_id=user_id,
            reason=reason,
            status=RequestStatus.REQUESTED,
        )
        request.items = [
            MedicineRequestItem(medicine_id=medicine_id, quantity=quantity)
            for medicine_id, quantity in items
        ]
        self.db.add(request)
        await self.db.flush()
        return request

    async def set_item_quantity(self, item: MedicineRequestItem, quantity: int) -> None:
        """Update a line item's quantity in place"""
        item.quantity = quantity
        self.db.add(item)
        await self.db.flush()

    async def get_medicines(self, medicine_ids: Sequence[int]) -> List[Medicine]:
        """Get medicines by ID"""
        if not medicine_ids:
            return []
        result = await self.db.execute(
            select(Medicine).where(Medicine.id.in_(list(medicine_ids)))
        )
        return list(result.scalars().all())

    async def adjust_stock(self, medicine_id: int, delta: int) -> None:
        """Apply a stock delta as a single UPDATE"""
        await self.db.execute(
            update(Medicine)
            .where(Medicine.id == medicine_id)
            .values(stock=Medicine.stock + delta, updated_at=datetime.now())
            .execution_options(synchronize_session="fetch")
        )

    async def count_requests(
        self,
        user_id: int,
        created_from: datetime,
        created_to: datetime,
        status: Optional[RequestStatus] = None
    ) -> int:
        """Count a user's requests created within a window (inclusive)"""
        query = select(func.count(MedicineRequest.id)).where(
            MedicineRequest.user_id == user_id,
            MedicineRequest.created_at >= created_from,
            MedicineRequest.created_at <= created_to,
        )
        if status:
            query = query.where(MedicineRequest.status == status)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def list_requests(
        self,
        status: Optional[RequestStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        take: Optional[int] = None
    ) -> Tuple[List[MedicineRequest], int]:
        """List requests newest first with optional status and text search"""
        conditions = []
        if status:
            conditions.append(MedicineRequest.status == status)
        if search:
            pattern = f"%{search}%"
            item_match = (
                select(MedicineRequestItem.id)
                .join(Medicine, Medicine.id == MedicineRequestItem.medicine_id)
                .where(
                    MedicineRequestItem.request_id == MedicineRequest.id,
                    or_(Medicine.name.ilike(pattern), Medicine.brand.ilike(pattern))
                )
                .exists()
            )
            user_match = (
                select(User.id)
                .where(
                    User.id == MedicineRequest.user_id,
                    or_(User.name.ilike(pattern), User.username.ilike(pattern))
                )
                .exists()
            )
            conditions.append(or_(user_match, item_match))

        query = (
            self._with_details()
            .where(*conditions)
            .order_by(MedicineRequest.requested_at.desc(), MedicineRequest.id.desc())
            .offset(skip)
        )
        if take is not None:
            query = query.limit(take)

        result = await self.db.execute(query)
        requests = list(result.scalars().all())

        total_result = await self.db.execute(
            select(func.count(MedicineRequest.id)).where(*conditions)
        )
        return requests, total_result.scalar_one()

    async def list_user_requests(self, user_id: int) -> List[MedicineRequest]:
        """Get all requests of one user, newest first"""
        result = await self.db.execute(
            self._with_details()
            .where(MedicineRequest.user_id == user_id)
            .order_by(MedicineRequest.requested_at.desc(), MedicineRequest.id.desc())
        )
        return list(result.scalars().all())

    async def count_by_status(self, updated_since: Optional[datetime] = None) -> Dict[RequestStatus, int]:
        """Count requests per status, optionally only those touched since a time"""
        query = select(MedicineRequest.status, func.count(MedicineRequest.id)).group_by(
            MedicineRequest.status
        )
        if updated_since is not None:
            query = query.where(MedicineRequest.updated_at >= updated_since)
        result = await self.db.execute(query)
        counts = {status: 0 for status in RequestStatus}
        for status, count in result.all():
            counts[RequestStatus(status)] = count
        return counts

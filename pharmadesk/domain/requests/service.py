"""
Medicine Requests Service Layer

Business logic for the request lifecycle (status transitions with stock
reconciliation), line item quantity edits, the monthly request limit
report, request submission and admin queries.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, time
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from pharmadesk.core.config import settings
from pharmadesk.core.exceptions import (
    NotFoundError, InvalidStateError, InvalidQuantityError,
    ItemNotFoundError, InsufficientStockError, RateLimitError
)
from pharmadesk.domain.requests.models import MedicineRequest, RequestStatus
from pharmadesk.domain.requests.repository import MedicineRequestRepository
from pharmadesk.domain.requests.state_machine import StockEffect, resolve_transition
from pharmadesk.domain.requests.stock_ledger import StockLedger
from pharmadesk.domain.users.service import UserService


@dataclass(frozen=True)
class RequestLimits:
    start_date: datetime
    end_date: datetime
    current_count: int
    approved_count: int


@dataclass(frozen=True)
class StatusSummary:
    totals: Dict[RequestStatus, int]
    today: Dict[RequestStatus, int]


def month_window(now: datetime) -> Tuple[datetime, datetime]:
    """First and last instant of the calendar month containing ``now``."""
    last_day = calendar.monthrange(now.year, now.month)[1]
    start = datetime(now.year, now.month, 1)
    end = datetime.combine(now.date().replace(day=last_day), time.max)
    return start, end


async def _load_request(repo, request_id: int) -> MedicineRequest:
    request = await repo.get_request_with_items(request_id)
    if not request:
        raise NotFoundError(
            message="Medicine request not found",
            details={"requestId": request_id}
        )
    return request


class RequestLifecycleService:
    """Status transitions and quantity edits for medicine requests"""

    def __init__(self, repository: MedicineRequestRepository):
        self.repo = repository
        self.ledger = StockLedger(repository)

    async def update_status(
        self,
        request_id: int,
        new_status: RequestStatus,
        cancelled_reason: Optional[str] = None
    ) -> MedicineRequest:
        """Move a request to ``new_status``, taking or restoring stock as required.

        Stock changes and the status change commit together; any failure
        rolls back all of them.
        """
        new_status = RequestStatus(new_status)

        async with self.repo.transaction():
            request = await _load_request(self.repo, request_id)
            previous = RequestStatus(request.status)
            transition = resolve_transition(previous, new_status)
            now = datetime.now()

            if transition.stock_effect == StockEffect.DECREMENT:
                try:
                    self.ledger.ensure_available(request.items)
                except InsufficientStockError as e:
                    logger.warning(f"Request {request_id} cannot be given: {e.message}")
                    raise
                for item in request.items:
                    await self.ledger.decrement(item.medicine, item.quantity)
            elif transition.stock_effect == StockEffect.RESTORE:
                for item in request.items:
                    await self.ledger.increment(item.medicine, item.quantity)

            if transition.stamp_approved_at and request.approved_at is None:
                request.approved_at = now
            if transition.stamp_given_at:
                request.given_at = now
            if transition.sets_cancelled_reason and cancelled_reason is not None:
                request.cancelled_reason = cancelled_reason

            request.status = new_status
            request.updated_at = now
            await self.repo.save_request(request)

        logger.info(
            f"Medicine request {request_id} status {previous.value} -> {new_status.value}"
            f" (stock effect: {transition.stock_effect.value})"
        )
        return request

    async def update_quantities(
        self,
        request_id: int,
        quantities: Dict[int, int]
    ) -> Dict[str, bool]:
        """Edit quantities of existing line items while the request is REQUESTED.

        Every pair is validated before any item is written. Stock is not touched.
        """
        async with self.repo.transaction():
            request = await _load_request(self.repo, request_id)

            if RequestStatus(request.status) != RequestStatus.REQUESTED:
                raise InvalidStateError(
                    message="Can only update quantities for requests with REQUESTED status",
                    details={"requestId": request_id, "currentStatus": RequestStatus(request.status).value}
                )

            edits = []
            for medicine_id, quantity in quantities.items():
                medicine_id = int(medicine_id)
                if quantity <= 0:
                    raise InvalidQuantityError(medicine_id, quantity)

                item = request.find_item(medicine_id)
                if item is None:
                    raise ItemNotFoundError(request_id, medicine_id)

                medicine = item.medicine
                if medicine is None:
                    raise NotFoundError(
                        message=f"Medicine with ID {medicine_id} not found",
                        details={"medicineId": medicine_id}
                    )
                if medicine.stock < quantity:
                    raise InsufficientStockError(
                        medicine_name=medicine.name,
                        requested=quantity,
                        available=medicine.stock,
                    )
                edits.append((item, quantity))

            for item, quantity in edits:
                await self.repo.set_item_quantity(item, quantity)

        logger.info(f"Medicine request {request_id}: updated {len(edits)} item quantities")
        return {"success": True}


class RequestLimitService:
    """Reports a user's request activity for the current calendar month.

    Read-only; it imposes no cap itself.
    """

    def __init__(self, repository: MedicineRequestRepository):
        self.repo = repository

    async def get_request_limits(self, user_id: int, now: Optional[datetime] = None) -> RequestLimits:
        start, end = month_window(now or datetime.now())
        current_count = await self.repo.count_requests(user_id, start, end)
        approved_count = await self.repo.count_requests(
            user_id, start, end, status=RequestStatus.GIVEN
        )
        return RequestLimits(
            start_date=start,
            end_date=end,
            current_count=current_count,
            approved_count=approved_count,
        )


class RequestSubmissionService:
    """Creates new requests from the mobile app"""

    def __init__(
        self,
        repository: MedicineRequestRepository,
        user_service: UserService,
        monthly_limit: Optional[int] = None
    ):
        self.repo = repository
        self.user_service = user_service
        self.limits = RequestLimitService(repository)
        self.monthly_limit = monthly_limit if monthly_limit is not None else settings.MONTHLY_REQUEST_LIMIT

    async def submit(
        self,
        user_id: int,
        reason: str,
        items: Sequence[Tuple[int, int]]
    ) -> MedicineRequest:
        """Create a REQUESTED request. Quantities are not checked against stock here."""
        user = await self.user_service.get_approved_user(user_id)

        if self.monthly_limit is not None:
            limits = await self.limits.get_request_limits(user.id)
            if limits.current_count >= self.monthly_limit:
                raise RateLimitError(
                    message="Monthly request limit reached",
                    details={
                        "limit": self.monthly_limit,
                        "currentCount": limits.current_count,
                        "resetAt": limits.end_date.isoformat(),
                    },
                    error_code="MONTHLY_LIMIT_REACHED"
                )

        medicine_ids = [medicine_id for medicine_id, _ in items]
        medicines = await self.repo.get_medicines(medicine_ids)
        found = {medicine.id for medicine in medicines}
        missing = [medicine_id for medicine_id in medicine_ids if medicine_id not in found]
        if missing:
            raise NotFoundError(
                message="One or more medicines not found",
                details={"medicineIds": missing}
            )

        async with self.repo.transaction():
            created = await self.repo.create_request(user.id, reason, items)
            request_id = created.id

        logger.info(f"User {user.id} submitted medicine request {request_id} with {len(items)} item(s)")
        return await _load_request(self.repo, request_id)


class RequestQueryService:
    """Read side for the admin request pages"""

    def __init__(self, repository: MedicineRequestRepository):
        self.repo = repository

    async def list_requests(
        self,
        status: Optional[RequestStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        take: Optional[int] = None
    ) -> Tuple[List[MedicineRequest], int]:
        return await self.repo.list_requests(status=status, search=search, skip=skip, take=take)

    async def get_request(self, request_id: int) -> MedicineRequest:
        return await _load_request(self.repo, request_id)

    async def list_user_requests(self, user_id: int) -> List[MedicineRequest]:
        return await self.repo.list_user_requests(user_id)

    async def get_status_summary(self, now: Optional[datetime] = None) -> StatusSummary:
        """Totals per status, and how many requests reached each status today"""
        now = now or datetime.now()
        start_of_day = datetime.combine(now.date(), time.min)
        totals = await self.repo.count_by_status()
        today = await self.repo.count_by_status(updated_since=start_of_day)
        return StatusSummary(totals=totals, today=today)

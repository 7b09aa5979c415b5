import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Dict, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pharmadesk.main import app
from pharmadesk.infrastructure.database import get_db, Base
from pharmadesk.models import User, Medicine, MedicineRequest, MedicineRequestItem
from pharmadesk.domain.users.models import UserStatus
from pharmadesk.domain.requests.models import RequestStatus


# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh in-memory database and session for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    TestSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with TestSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database dependency override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, username: str, status: UserStatus) -> User:
    user = User(username=username, name=username.title(), status=status)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
async def approved_user(db_session: AsyncSession) -> User:
    """Create an approved mobile user."""
    return await _create_user(db_session, "maria", UserStatus.APPROVED)


@pytest.fixture(scope="function")
async def pending_user(db_session: AsyncSession) -> User:
    """Create a user still waiting for admin approval."""
    return await _create_user(db_session, "pedro", UserStatus.PENDING)


@pytest.fixture(scope="function")
def create_medicine(db_session: AsyncSession):
    """Factory for medicines with a given stock."""

    async def _create(name: str, stock: int, brand: str = "Generic") -> Medicine:
        medicine = Medicine(name=name, brand=brand, stock=stock)
        db_session.add(medicine)
        await db_session.commit()
        await db_session.refresh(medicine)
        return medicine

    return _create


@pytest.fixture(scope="function")
def create_request(db_session: AsyncSession):
    """Factory for requests with line items, keyed by medicine ID."""

    async def _create(
        user: User,
        quantities: Dict[int, int],
        status: RequestStatus = RequestStatus.REQUESTED,
        reason: str = "Monthly maintenance",
        created_at: Optional[datetime] = None,
    ) -> MedicineRequest:
        request = MedicineRequest(user_id=user.id, reason=reason, status=status)
        if created_at is not None:
            request.created_at = created_at
            request.requested_at = created_at
        request.items = [
            MedicineRequestItem(medicine_id=medicine_id, quantity=quantity)
            for medicine_id, quantity in quantities.items()
        ]
        db_session.add(request)
        await db_session.commit()
        return request

    return _create


@pytest.fixture(scope="function")
def stock_of(db_session: AsyncSession):
    """Read a medicine's committed stock straight from the database."""

    async def _stock(medicine_id: int) -> int:
        result = await db_session.execute(select(Medicine.stock).where(Medicine.id == medicine_id))
        return result.scalar_one()

    return _stock


class InMemoryRequestRepository:
    """Dictionary-backed stand-in for MedicineRequestRepository.

    Holds transient model instances. A failed transaction restores every
    stock value, request field and item quantity to its state at entry.
    """

    def __init__(self):
        self.medicines: Dict[int, Medicine] = {}
        self.requests: Dict[int, MedicineRequest] = {}
        self.stock_movements = []
        self.commits = 0
        self.rollbacks = 0

    def add_medicine(self, medicine_id: int, stock: int, name: Optional[str] = None) -> Medicine:
        medicine = Medicine(id=medicine_id, name=name or f"Medicine {medicine_id}", brand="Generic", stock=stock)
        self.medicines[medicine_id] = medicine
        return medicine

    def add_request(
        self,
        request_id: int,
        quantities: Dict[int, int],
        status: RequestStatus = RequestStatus.REQUESTED,
        user_id: int = 1,
        created_at: Optional[datetime] = None,
    ) -> MedicineRequest:
        created_at = created_at or datetime.now()
        request = MedicineRequest(
            id=request_id,
            user_id=user_id,
            reason="Maintenance",
            status=status,
            requested_at=created_at,
            created_at=created_at,
            updated_at=created_at,
        )
        items = []
        for index, (medicine_id, quantity) in enumerate(quantities.items(), start=1):
            item = MedicineRequestItem(
                id=request_id * 100 + index,
                medicine_id=medicine_id,
                quantity=quantity,
            )
            item.medicine = self.medicines.get(medicine_id)
            items.append(item)
        request.items = items
        self.requests[request_id] = request
        return request

    def _snapshot(self):
        return {
            "stock": {mid: m.stock for mid, m in self.medicines.items()},
            "requests": {
                rid: (
                    r.status, r.approved_at, r.given_at, r.cancelled_reason, r.updated_at,
                    [(item, item.quantity) for item in r.items],
                )
                for rid, r in self.requests.items()
            },
            "movements": len(self.stock_movements),
        }

    def _restore(self, snapshot) -> None:
        for mid, stock in snapshot["stock"].items():
            self.medicines[mid].stock = stock
        for rid, (status, approved_at, given_at, reason, updated_at, items) in snapshot["requests"].items():
            request = self.requests[rid]
            request.status = status
            request.approved_at = approved_at
            request.given_at = given_at
            request.cancelled_reason = reason
            request.updated_at = updated_at
            for item, quantity in items:
                item.quantity = quantity
        del self.stock_movements[snapshot["movements"]:]

    @asynccontextmanager
    async def transaction(self):
        snapshot = self._snapshot()
        try:
            yield self
        except Exception:
            self._restore(snapshot)
            self.rollbacks += 1
            raise
        self.commits += 1

    async def get_request_with_items(self, request_id: int) -> Optional[MedicineRequest]:
        return self.requests.get(request_id)

    async def save_request(self, request: MedicineRequest) -> MedicineRequest:
        return request

    async def set_item_quantity(self, item: MedicineRequestItem, quantity: int) -> None:
        item.quantity = quantity

    async def get_medicines(self, medicine_ids):
        return [self.medicines[mid] for mid in medicine_ids if mid in self.medicines]

    async def adjust_stock(self, medicine_id: int, delta: int) -> None:
        medicine = self.medicines[medicine_id]
        assert medicine.stock + delta >= 0, "stock went negative"
        medicine.stock += delta
        self.stock_movements.append((medicine_id, delta))

    async def count_requests(self, user_id, created_from, created_to, status=None) -> int:
        return sum(
            1 for r in self.requests.values()
            if r.user_id == user_id
            and created_from <= r.created_at <= created_to
            and (status is None or r.status == status)
        )


@pytest.fixture(scope="function")
def fake_repo() -> InMemoryRequestRepository:
    """In-memory persistence handle for engine unit tests."""
    return InMemoryRequestRepository()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "requests: mark test as medicine request workflow related"
    )
    config.addinivalue_line(
        "markers", "mobile: mark test as mobile API related"
    )

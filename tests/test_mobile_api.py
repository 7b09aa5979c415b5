from datetime import datetime

import pytest
from httpx import AsyncClient

from pharmadesk.core.config import settings
from pharmadesk.domain.requests.models import RequestStatus


@pytest.mark.mobile
@pytest.mark.integration
class TestSubmitRequestAPI:
    """Test request submission from the mobile app"""

    @pytest.mark.asyncio
    async def test_submit_request(self, client: AsyncClient, approved_user, create_medicine, stock_of):
        """Test an approved user can submit a request"""
        medicine = await create_medicine("Paracetamol", stock=10)
        medicine_id = medicine.id

        response = await client.post("/api/v1/mobile/medicine/requests", json={
            "userId": approved_user.id,
            "reason": "Fever",
            "medicines": [{"medicineId": medicine_id}]
        })

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "REQUESTED"
        assert data["userId"] == approved_user.id
        assert data["items"][0]["medicineId"] == medicine_id
        assert data["items"][0]["quantity"] == 0
        assert data["approvedAt"] is None
        assert await stock_of(medicine_id) == 10

    @pytest.mark.asyncio
    async def test_submit_pending_user(self, client: AsyncClient, pending_user, create_medicine):
        medicine = await create_medicine("Paracetamol", stock=10)

        response = await client.post("/api/v1/mobile/medicine/requests", json={
            "userId": pending_user.id,
            "reason": "Fever",
            "medicines": [{"medicineId": medicine.id, "quantity": 1}]
        })

        assert response.status_code == 403
        assert response.json()["error_code"] == "USER_NOT_APPROVED"

    @pytest.mark.asyncio
    async def test_submit_unknown_user(self, client: AsyncClient, create_medicine):
        medicine = await create_medicine("Paracetamol", stock=10)

        response = await client.post("/api/v1/mobile/medicine/requests", json={
            "userId": 404,
            "reason": "Fever",
            "medicines": [{"medicineId": medicine.id}]
        })

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_submit_unknown_medicine(self, client: AsyncClient, approved_user, create_medicine):
        medicine = await create_medicine("Paracetamol", stock=10)

        response = await client.post("/api/v1/mobile/medicine/requests", json={
            "userId": approved_user.id,
            "reason": "Fever",
            "medicines": [{"medicineId": medicine.id}, {"medicineId": 999}]
        })

        assert response.status_code == 404
        assert response.json()["details"] == {"medicineIds": [999]}

    @pytest.mark.asyncio
    async def test_submit_validation(self, client: AsyncClient, approved_user):
        """Test empty, duplicate and oversized medicine lists are rejected"""
        base = {"userId": approved_user.id, "reason": "Fever"}

        response = await client.post("/api/v1/mobile/medicine/requests", json={**base, "medicines": []})
        assert response.status_code == 422

        response = await client.post("/api/v1/mobile/medicine/requests", json={
            **base, "medicines": [{"medicineId": 1}, {"medicineId": 1}]
        })
        assert response.status_code == 422

        too_many = [{"medicineId": i} for i in range(1, settings.MAX_ITEMS_PER_REQUEST + 2)]
        response = await client.post("/api/v1/mobile/medicine/requests", json={**base, "medicines": too_many})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_submit_monthly_limit(self, client: AsyncClient, approved_user, create_medicine, monkeypatch):
        """Test the optional monthly cap refuses submissions once reached"""
        monkeypatch.setattr(settings, "MONTHLY_REQUEST_LIMIT", 1)
        medicine = await create_medicine("Paracetamol", stock=10)
        payload = {
            "userId": approved_user.id,
            "reason": "Fever",
            "medicines": [{"medicineId": medicine.id}]
        }

        response = await client.post("/api/v1/mobile/medicine/requests", json=payload)
        assert response.status_code == 201

        response = await client.post("/api/v1/mobile/medicine/requests", json=payload)
        assert response.status_code == 429
        data = response.json()
        assert data["error_code"] == "MONTHLY_LIMIT_REACHED"
        assert data["details"]["limit"] == 1
        assert data["details"]["currentCount"] == 1


@pytest.mark.mobile
@pytest.mark.integration
class TestRequestLimitsAPI:
    """Test the monthly request activity endpoint"""

    @pytest.mark.asyncio
    async def test_request_limits(self, client: AsyncClient, approved_user, create_medicine, create_request):
        """Test counts cover this month only, with GIVEN counted separately"""
        medicine = await create_medicine("Paracetamol", stock=10)
        now = datetime.now()
        await create_request(approved_user, {medicine.id: 1})
        await create_request(approved_user, {medicine.id: 1}, status=RequestStatus.GIVEN)
        await create_request(approved_user, {medicine.id: 1}, status=RequestStatus.CANCELLED)
        await create_request(
            approved_user, {medicine.id: 1}, status=RequestStatus.GIVEN,
            created_at=datetime(now.year - 1, now.month, 1)
        )

        response = await client.get("/api/v1/mobile/medicine/request-limits", params={"userId": approved_user.id})

        assert response.status_code == 200
        data = response.json()
        assert data["currentCount"] == 3
        assert data["approvedCount"] == 1
        assert datetime.fromisoformat(data["startDate"]) == datetime(now.year, now.month, 1)
        assert datetime.fromisoformat(data["endDate"]).day >= 28

    @pytest.mark.asyncio
    async def test_request_limits_pending_user(self, client: AsyncClient, pending_user):
        response = await client.get("/api/v1/mobile/medicine/request-limits", params={"userId": pending_user.id})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_request_limits_unknown_user(self, client: AsyncClient):
        response = await client.get("/api/v1/mobile/medicine/request-limits", params={"userId": 777})

        assert response.status_code == 404


@pytest.mark.mobile
@pytest.mark.integration
class TestRequestHistoryAPI:

    @pytest.mark.asyncio
    async def test_list_my_requests(self, client: AsyncClient, approved_user, pending_user, create_medicine, create_request):
        medicine = await create_medicine("Paracetamol", stock=10)
        await create_request(approved_user, {medicine.id: 1})
        await create_request(approved_user, {medicine.id: 2})
        await create_request(pending_user, {medicine.id: 3})

        response = await client.get("/api/v1/mobile/medicine/requests", params={"userId": approved_user.id})

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 2
        assert all(r["userId"] == approved_user.id for r in data)

    @pytest.mark.asyncio
    async def test_list_unknown_user(self, client: AsyncClient):
        response = await client.get("/api/v1/mobile/medicine/requests", params={"userId": 321})

        assert response.status_code == 404

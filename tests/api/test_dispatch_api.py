"""Tests for dispatch endpoints: queue, suggestion and assignment."""
import pytest
from unittest.mock import AsyncMock

from dispatchflow.core.exceptions import (
    CapacityExceeded,
    DriverAtCapacity,
    InvalidStageTransition,
    OrderNotFound,
    VehicleNotFound,
)
from dispatchflow.services.dispatch.assignment import BulkAssignmentResult
from tests.api.conftest import make_assignment_details

ASSIGN_BODY = {
    "vehicle_id": "van",
    "driver": {"employee_id": "DRV-001", "employee_name": "Test Driver"},
    "staff_id": "DO2-1",
    "staff_name": "Dispatch Officer",
}


class TestAssignVehicle:

    async def test_assign_returns_details(self, client, mock_session):
        mock_session.run_sync = AsyncMock(return_value=make_assignment_details())

        response = await client.post("/api/v1/dispatch/assign/ORD-001", json=ASSIGN_BODY)
        assert response.status_code == 200
        data = response.json()
        assert data["assigned_vehicle"]["vehicle_type"] == "van"
        assert data["assigned_driver"]["employee_id"] == "DRV-001"
        assert data["requirements"]["package_count"] == 3

    async def test_capacity_exceeded_returns_409_with_violations(self, client, mock_session):
        violations = [{"constraint": "packages", "required": 3, "capacity": 2, "excess": 1}]
        mock_session.run_sync = AsyncMock(side_effect=CapacityExceeded("bike", violations))

        response = await client.post(
            "/api/v1/dispatch/assign/ORD-001",
            json={**ASSIGN_BODY, "vehicle_id": "bike"},
        )
        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["reason"] == "capacity exceeded"
        assert detail["violations"] == violations

    async def test_driver_at_capacity_returns_409(self, client, mock_session):
        mock_session.run_sync = AsyncMock(
            side_effect=DriverAtCapacity("DRV-001", current_assignments=5, max_assignments=5)
        )

        response = await client.post("/api/v1/dispatch/assign/ORD-001", json=ASSIGN_BODY)
        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "driver at capacity"

    async def test_unknown_vehicle_returns_404(self, client, mock_session):
        mock_session.run_sync = AsyncMock(side_effect=VehicleNotFound("truck"))

        response = await client.post(
            "/api/v1/dispatch/assign/ORD-001",
            json={**ASSIGN_BODY, "vehicle_id": "truck"},
        )
        assert response.status_code == 404
        assert response.json()["detail"]["reason"] == "vehicle not found"

    async def test_storage_not_completed_returns_400(self, client, mock_session):
        mock_session.run_sync = AsyncMock(side_effect=InvalidStageTransition(
            "Order ORD-001 has not completed storage", order_id="ORD-001"
        ))

        response = await client.post("/api/v1/dispatch/assign/ORD-001", json=ASSIGN_BODY)
        assert response.status_code == 400

    async def test_missing_driver_rejected(self, client, mock_session):
        body = {k: v for k, v in ASSIGN_BODY.items() if k != "driver"}

        response = await client.post("/api/v1/dispatch/assign/ORD-001", json=body)
        assert response.status_code == 422
        mock_session.run_sync.assert_not_called()


class TestBulkAssign:

    async def test_partial_success(self, client, mock_session):
        result = BulkAssignmentResult(results=[
            {"order_id": "ORD-001", "success": True, "assignment": make_assignment_details()},
            {
                "order_id": "ORD-002",
                "success": False,
                "error": DriverAtCapacity("DRV-002", 5, 5).to_detail(),
            },
        ])
        mock_session.run_sync = AsyncMock(return_value=result)

        entry = {k: ASSIGN_BODY[k] for k in ("vehicle_id", "driver")}
        response = await client.post("/api/v1/dispatch/bulk-assign", json={
            "staff_id": "DO2-1",
            "staff_name": "Dispatch Officer",
            "assignments": [
                {"order_id": "ORD-001", **entry},
                {"order_id": "ORD-002", **entry},
            ],
        })
        assert response.status_code == 200
        data = response.json()
        assert data["success_count"] == 1
        assert data["failure_count"] == 1
        assert data["results"][1]["error"]["reason"] == "driver at capacity"

    async def test_empty_assignments_rejected(self, client, mock_session):
        response = await client.post("/api/v1/dispatch/bulk-assign", json={
            "staff_id": "DO2-1",
            "staff_name": "Dispatch Officer",
            "assignments": [],
        })
        assert response.status_code == 422


class TestSuggestVehicle:

    async def test_suggestion_returns_catalog(self, client, mock_session):
        van = {
            "vehicle_id": "v-1",
            "vehicle_type": "van",
            "label": "Van",
            "max_volume": 5.0,
            "max_weight": 500.0,
            "max_packages": 20,
            "priority": 100,
        }
        mock_session.run_sync = AsyncMock(return_value={
            "order_id": "ORD-001",
            "requirements": {"volume": 0.4, "weight": 4.0, "package_count": 3},
            "suggested_vehicle": van,
            "vehicles": [{
                "vehicle": van,
                "suitable": True,
                "violations": [],
                "utilization": {"volume": 8.0, "weight": 0.8, "packages": 15.0},
            }],
        })

        response = await client.get("/api/v1/dispatch/suggest-vehicle/ORD-001")
        assert response.status_code == 200
        data = response.json()
        assert data["suggested_vehicle"]["vehicle_type"] == "van"
        assert data["vehicles"][0]["suitable"] is True

    async def test_unknown_order_returns_404(self, client, mock_session):
        mock_session.run_sync = AsyncMock(side_effect=OrderNotFound("ORD-404"))

        response = await client.get("/api/v1/dispatch/suggest-vehicle/ORD-404")
        assert response.status_code == 404


class TestQueueAndDrivers:

    async def test_queue_returns_entries(self, client, mock_session):
        mock_session.run_sync = AsyncMock(return_value=[{
            "order_id": "ORD-001",
            "customer_name": "Test Customer",
            "priority": "high",
            "delivery_date": "2026-10-18T14:00:00+00:00",
            "time_slot": "09:00-12:00",
            "delivery_address": {"area": "Colombo"},
            "requirements": {"volume": 0.4, "weight": 4.0, "package_count": 3},
            "total_amount": 150.0,
            "items_count": 3,
            "storage_location": "A-3",
            "hours_until_delivery": 2,
            "is_urgent": True,
        }])

        response = await client.get("/api/v1/dispatch/queue")
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["is_urgent"] is True

    async def test_drivers_listed(self, client, mock_session):
        mock_session.run_sync = AsyncMock(return_value=[{
            "employee_id": "DRV-001",
            "name": "Test Driver",
            "phone": None,
            "current_assignments": 1,
            "max_assignments": 5,
        }])

        response = await client.get("/api/v1/dispatch/drivers")
        assert response.status_code == 200
        assert response.json()[0]["employee_id"] == "DRV-001"

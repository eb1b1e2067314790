"""Tests for the read-only vehicle catalog endpoints."""
import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from tests.api.conftest import make_mock_result, make_mock_vehicle_type


class TestListVehicles:

    async def test_list_returns_200(self, client, mock_session):
        vehicle = make_mock_vehicle_type()
        mock_session.execute = AsyncMock(
            return_value=make_mock_result(scalars_list=[vehicle])
        )

        response = await client.get("/api/v1/vehicles")
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["vehicle_type"] == "van"
        assert data[0]["effective_max_volume"] == 5.0

    async def test_include_inactive_flag_accepted(self, client, mock_session):
        mock_session.execute = AsyncMock(return_value=make_mock_result(scalars_list=[]))

        response = await client.get("/api/v1/vehicles?include_inactive=true")
        assert response.status_code == 200
        assert response.json() == []


class TestGetVehicle:

    async def test_found_returns_200(self, client, mock_session):
        vehicle = make_mock_vehicle_type()
        mock_session.execute = AsyncMock(
            return_value=make_mock_result(scalar_value=vehicle)
        )

        response = await client.get(f"/api/v1/vehicles/{vehicle.id}")
        assert response.status_code == 200
        assert response.json()["id"] == str(vehicle.id)

    async def test_not_found_returns_404(self, client, mock_session):
        mock_session.execute = AsyncMock(
            return_value=make_mock_result(scalar_value=None)
        )

        response = await client.get(f"/api/v1/vehicles/{uuid4()}")
        assert response.status_code == 404

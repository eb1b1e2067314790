"""
Vehicle catalog API endpoints (read only).
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dispatchflow.db.database import get_async_session
from dispatchflow.models import VehicleType
from dispatchflow.schemas.vehicle import VehicleTypeResponse

router = APIRouter()


@router.get("", response_model=list[VehicleTypeResponse])
async def list_vehicles(
    include_inactive: bool = Query(False),
    session: AsyncSession = Depends(get_async_session),
):
    """
    List the vehicle catalog.

    - **include_inactive**: Also list vehicles that are not assignable
    """
    query = select(VehicleType)
    if not include_inactive:
        query = query.where(VehicleType.is_active.is_(True))
    query = query.order_by(VehicleType.created_at, VehicleType.vehicle_type)

    result = await session.execute(query)
    vehicles = result.scalars().all()

    return [VehicleTypeResponse.model_validate(v) for v in vehicles]


@router.get("/{vehicle_id}", response_model=VehicleTypeResponse)
async def get_vehicle(
    vehicle_id: UUID,
    session: AsyncSession = Depends(get_async_session),
):
    """Get a catalog vehicle by ID."""
    result = await session.execute(
        select(VehicleType).where(VehicleType.id == vehicle_id)
    )
    vehicle = result.scalar_one_or_none()

    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")

    return VehicleTypeResponse.model_validate(vehicle)

"""
Delivery route API endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dispatchflow.db.database import get_async_session
from dispatchflow.schemas.order import StartRouteRequest, StartRouteResponse
from dispatchflow.services import operations

router = APIRouter()


@router.post("/{vehicle_id}/start", response_model=StartRouteResponse)
async def start_route(
    vehicle_id: str,
    data: StartRouteRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """
    Start the delivery route of a vehicle.

    Every loaded (order-picked-up) order assigned to the vehicle moves to
    on-way. Orders that fail are listed in ``errors``; the rest proceed.
    """
    return await session.run_sync(
        operations.start_route, vehicle_id, data.driver_id, data.driver_name
    )

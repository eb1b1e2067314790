"""
Dispatch API endpoints: assignment queue, vehicle suggestion and assignment.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from dispatchflow.db.database import get_async_session
from dispatchflow.schemas.dispatch import (
    AssignRequest,
    AssignmentResponse,
    BulkAssignRequest,
    BulkAssignResponse,
    QueueEntry,
    VehicleSuggestionResponse,
)
from dispatchflow.schemas.vehicle import DriverResponse
from dispatchflow.services.dispatch import assignment

router = APIRouter()


def _drivers(session: Session) -> list[DriverResponse]:
    return [DriverResponse.model_validate(e) for e in assignment.available_drivers(session)]


@router.get("/queue", response_model=list[QueueEntry])
async def get_dispatch_queue(
    session: AsyncSession = Depends(get_async_session),
):
    """
    Orders waiting for a vehicle (storage completed, not yet assigned).

    Sorted by priority, then delivery date. Orders due soon are urgent.
    """
    return await session.run_sync(assignment.build_dispatch_queue)


@router.get("/drivers", response_model=list[DriverResponse])
async def list_available_drivers(
    session: AsyncSession = Depends(get_async_session),
):
    """Active drivers with at least one free assignment slot."""
    return await session.run_sync(_drivers)


@router.get("/suggest-vehicle/{order_id}", response_model=VehicleSuggestionResponse)
async def suggest_vehicle(
    order_id: str,
    session: AsyncSession = Depends(get_async_session),
):
    """
    Suggest the smallest vehicle that fits the order.

    Every active vehicle is listed with its suitability and shortfalls.
    The suggestion is advisory.
    """
    return await session.run_sync(assignment.suggest_vehicle, order_id)


@router.post("/assign/{order_id}", response_model=AssignmentResponse)
async def assign_vehicle(
    order_id: str,
    data: AssignRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """
    Assign a vehicle and driver to an order.

    - **404**: order, vehicle or driver not found
    - **409**: capacity exceeded (with per-constraint violations) or driver at capacity
    - **400**: storage not completed or order already assigned
    """
    return await session.run_sync(
        lambda s: assignment.assign_vehicle(
            s,
            order_id,
            data.vehicle_id,
            data.driver.model_dump(),
            data.staff_id,
            data.staff_name,
            notes=data.notes,
        )
    )


@router.post("/bulk-assign", response_model=BulkAssignResponse)
async def bulk_assign(
    data: BulkAssignRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Assign many orders; each entry succeeds or fails independently."""
    entries = [entry.model_dump() for entry in data.assignments]
    result = await session.run_sync(
        assignment.bulk_assign, entries, data.staff_id, data.staff_name
    )
    return result.to_dict()

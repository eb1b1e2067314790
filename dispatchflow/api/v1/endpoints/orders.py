"""
Order API endpoints.

Role operations on a single order (packing, storage, loading, delivery).
Domain services are synchronous and run through ``AsyncSession.run_sync``;
domain errors are translated by the application's exception handler.
"""
from typing import Any

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from dispatchflow.db.database import get_async_session
from dispatchflow.schemas.base import ActorRequest
from dispatchflow.schemas.order import (
    OrderResponse,
    OperationResult,
    CompletePackingRequest,
    ItemComplaintRequest,
    StorageItemRequest,
    CompleteStorageRequest,
    LoadingItemRequest,
    CompleteLoadingRequest,
    CompleteDeliveryRequest,
    FailDeliveryRequest,
)
from dispatchflow.services import operations
from dispatchflow.services.dispatch.requirements import estimate_requirements
from dispatchflow.services.queries import load_order
from dispatchflow.services.workflow.reconciler import workflow_progress

router = APIRouter()


def _order_view(session: Session, order_id: str) -> OrderResponse:
    order = load_order(session, order_id)
    response = OrderResponse.model_validate(order)
    response.requirements = estimate_requirements(order.items).to_dict()
    if order.tracking is not None:
        response.workflow_progress = workflow_progress(order.tracking)
    return response


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    session: AsyncSession = Depends(get_async_session),
):
    """Get an order with its estimated requirements and workflow progress."""
    return await session.run_sync(_order_view, order_id)


# =============================================================================
# Packing
# =============================================================================

@router.post("/{order_id}/packing/start", response_model=OperationResult)
async def start_packing(
    order_id: str,
    data: ActorRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Start packing (status -> picking-order)."""
    return await session.run_sync(
        operations.start_packing, order_id, data.employee_id, data.employee_name
    )


@router.put("/{order_id}/packing/items/{item_index}")
async def pack_item(
    order_id: str,
    data: ActorRequest,
    item_index: int = Path(..., ge=0, description="Zero-based item position"),
    session: AsyncSession = Depends(get_async_session),
) -> dict[str, Any]:
    """Mark one item as packed."""
    return await session.run_sync(
        operations.pack_item, order_id, item_index, data.employee_id, data.employee_name
    )


@router.post("/{order_id}/items/{item_index}/complaints", status_code=201)
async def report_item_complaint(
    order_id: str,
    data: ItemComplaintRequest,
    item_index: int = Path(..., ge=0, description="Zero-based item position"),
    session: AsyncSession = Depends(get_async_session),
) -> dict[str, Any]:
    """
    Report a complaint against an item.

    Packing complaints of type not_available, damaged, expired or
    insufficient_stock mark the item unavailable.
    """
    return await session.run_sync(
        lambda s: operations.report_item_complaint(
            s,
            order_id,
            item_index,
            data.employee_id,
            data.employee_name,
            stage=data.stage,
            complaint_type=data.complaint_type,
            details=data.details,
        )
    )


@router.post("/{order_id}/packing/complete", response_model=OperationResult)
async def complete_packing(
    order_id: str,
    data: CompletePackingRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Complete packing (status -> allocated-driver)."""
    return await session.run_sync(
        operations.complete_packing, order_id, data.employee_id, data.employee_name, data.notes
    )


# =============================================================================
# Storage
# =============================================================================

@router.put("/{order_id}/storage/items/{item_index}")
async def verify_storage_item(
    order_id: str,
    data: StorageItemRequest,
    item_index: int = Path(..., ge=0, description="Zero-based item position"),
    session: AsyncSession = Depends(get_async_session),
) -> dict[str, Any]:
    """Record the storage verification of one item."""
    return await session.run_sync(
        lambda s: operations.verify_storage_item(
            s,
            order_id,
            item_index,
            data.employee_id,
            data.employee_name,
            verified=data.verified,
            condition=data.condition,
        )
    )


@router.post("/{order_id}/storage/complete", response_model=OperationResult)
async def complete_storage(
    order_id: str,
    data: CompleteStorageRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Complete storage verification (status -> ready-to-pickup)."""
    return await session.run_sync(
        lambda s: operations.complete_storage(
            s,
            order_id,
            data.employee_id,
            data.employee_name,
            storage_location=data.storage_location,
            notes=data.notes,
        )
    )


# =============================================================================
# Loading
# =============================================================================

@router.put("/{order_id}/loading/items/{item_index}")
async def verify_loading_item(
    order_id: str,
    data: LoadingItemRequest,
    item_index: int = Path(..., ge=0, description="Zero-based item position"),
    session: AsyncSession = Depends(get_async_session),
) -> dict[str, Any]:
    """Record the loading verification of one item."""
    return await session.run_sync(
        lambda s: operations.verify_loading_item(
            s,
            order_id,
            item_index,
            data.employee_id,
            data.employee_name,
            verified=data.verified,
            notes=data.notes,
        )
    )


@router.post("/{order_id}/loading/complete", response_model=OperationResult)
async def complete_loading(
    order_id: str,
    data: CompleteLoadingRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Complete loading (status -> order-picked-up)."""
    return await session.run_sync(
        operations.complete_loading, order_id, data.employee_id, data.employee_name, data.notes
    )


# =============================================================================
# Delivery
# =============================================================================

@router.post("/{order_id}/delivery/complete", response_model=OperationResult)
async def complete_delivery(
    order_id: str,
    data: CompleteDeliveryRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Complete the delivery (status -> order-complete) and release the driver."""
    return await session.run_sync(
        lambda s: operations.complete_delivery(
            s,
            order_id,
            data.driver_id,
            data.driver_name,
            customer_confirmed=data.customer_confirmed,
            notes=data.notes,
            satisfaction=data.customer_satisfaction,
            signature=data.customer_signature,
        )
    )


@router.post("/{order_id}/delivery/fail", response_model=OperationResult)
async def fail_delivery(
    order_id: str,
    data: FailDeliveryRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Record a failed delivery (status -> parcel-returned) and release the driver."""
    return await session.run_sync(
        operations.fail_delivery, order_id, data.driver_id, data.driver_name, data.reason
    )

"""
Order Pydantic schemas: order views and the role operation payloads.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import Field

from dispatchflow.models.enums import ComplaintStage, OrderStatus, PackingStatus
from dispatchflow.schemas.base import ActorRequest, BaseSchema


# =============================================================================
# Responses
# =============================================================================

class OrderItemResponse(BaseSchema):
    """Order line with its per-stage flags."""
    position: int
    product_id: Optional[str]
    product_name: Optional[str]
    quantity: int
    weight: Optional[str]

    packing_status: PackingStatus
    packed: bool
    packed_at: Optional[datetime]
    storage_verified: bool
    storage_verified_at: Optional[datetime]
    storage_condition: Optional[str]
    loading_verified: bool
    loading_verified_at: Optional[datetime]

    complaints: list[dict[str, Any]] = Field(default_factory=list)


class OrderResponse(BaseSchema):
    """Order with its derived requirements and workflow progress."""
    id: UUID
    order_id: str
    customer_id: Optional[UUID]
    status: OrderStatus
    total_amount: Decimal
    delivery_address: Optional[dict[str, Any]]
    delivery_date: Optional[datetime]
    time_slot: Optional[str]
    special_instructions: Optional[str]

    packing_details: Optional[dict[str, Any]]
    storage_details: Optional[dict[str, Any]]
    assignment_details: Optional[dict[str, Any]]
    loading_details: Optional[dict[str, Any]]
    route_details: Optional[dict[str, Any]]
    delivery_details: Optional[dict[str, Any]]

    items: list[OrderItemResponse]

    requirements: Optional[dict[str, Any]] = None
    workflow_progress: Optional[dict[str, bool]] = None

    created_at: datetime
    updated_at: datetime


class OperationResult(BaseSchema):
    """Outcome of an order-level operation."""
    order_id: str
    status: OrderStatus


# =============================================================================
# Packing
# =============================================================================

class CompletePackingRequest(ActorRequest):
    notes: Optional[str] = Field(None, max_length=1000)


class ItemComplaintRequest(ActorRequest):
    """Complaint raised against one item."""
    stage: ComplaintStage = ComplaintStage.PACKING
    complaint_type: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="e.g. not_available, damaged, expired, insufficient_stock",
    )
    details: Optional[str] = Field(None, max_length=1000)


# =============================================================================
# Storage
# =============================================================================

class StorageItemRequest(ActorRequest):
    verified: bool = True
    condition: Optional[str] = Field(None, max_length=50)


class CompleteStorageRequest(ActorRequest):
    storage_location: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


# =============================================================================
# Loading
# =============================================================================

class LoadingItemRequest(ActorRequest):
    verified: bool = True
    notes: Optional[str] = Field(None, max_length=1000)


class CompleteLoadingRequest(ActorRequest):
    notes: Optional[str] = Field(None, max_length=1000)


# =============================================================================
# Route & Delivery
# =============================================================================

class StartRouteRequest(BaseSchema):
    driver_id: str = Field(..., min_length=1, max_length=50)
    driver_name: str = Field(..., min_length=1, max_length=100)


class StartRouteResponse(BaseSchema):
    vehicle_id: str
    orders_on_route: list[str]
    total_orders: int
    errors: list[dict[str, Any]] = Field(default_factory=list)


class CompleteDeliveryRequest(StartRouteRequest):
    customer_confirmed: bool = False
    notes: Optional[str] = Field(None, max_length=1000)
    customer_satisfaction: Optional[int] = Field(None, ge=1, le=5)
    customer_signature: Optional[str] = None


class FailDeliveryRequest(StartRouteRequest):
    reason: str = Field(..., min_length=1, max_length=500)

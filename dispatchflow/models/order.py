"""
Order model for DispatchFlow.

The order is the single source of truth for where a purchase is in its
lifecycle. Each operational role writes its own audit block (packing,
storage, loading, route, delivery) next to the status.
"""
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Any
from uuid import UUID

from sqlalchemy import String, Text, Integer, Boolean, Numeric, Enum, ForeignKey, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dispatchflow.models.base import BaseModel, JSONType, enum_values
from dispatchflow.models.enums import OrderStatus, PackingStatus

if TYPE_CHECKING:
    from dispatchflow.models.customer import Customer
    from dispatchflow.models.tracking import WorkflowTrackingRecord


class Order(BaseModel):
    """
    Customer purchase moving through packing, storage, dispatch and delivery.

    Audit Blocks (JSON):
    --------------------
    - packing_details: {started_at, completed_at, staff, notes, progress}
    - storage_details: {completed_at, staff, storage_location, notes, progress}
    - assignment_details: {assigned_vehicle, assigned_driver, assigned_at,
      assigned_by, notes, requirements}
    - loading_details: {completed_at, staff, notes, progress,
      total_items_loaded, total_items_requested, ready_for_dispatch}
    - route_details: {started_at, started_by}
    - delivery_details: {delivered_at, delivered_by, notes,
      customer_satisfaction, customer_signature, customer_confirmed}

    Staff/driver values are {"staff_id", "staff_name"} dicts. Timestamps are
    ISO strings. JSON blocks are always replaced, never mutated in place.
    """
    __tablename__ = "orders"

    # =========================================================================
    # Order Reference
    # =========================================================================
    order_id: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )

    customer_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("customers.id"),
        nullable=True,
    )

    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status", values_callable=enum_values),
        nullable=False,
        default=OrderStatus.CART_NOT_PAID,
        index=True,
    )

    # =========================================================================
    # Commercial & Delivery Details
    # =========================================================================
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
    )

    # {"area": ..., "full_address": ...}
    delivery_address: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=True,
    )

    delivery_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    time_slot: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    special_instructions: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # =========================================================================
    # Role Audit Blocks
    # =========================================================================
    packing_details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    storage_details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    assignment_details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    loading_details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    route_details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    delivery_details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    # =========================================================================
    # Relationships
    # =========================================================================
    customer: Mapped[Optional["Customer"]] = relationship(
        "Customer",
        back_populates="orders",
        lazy="joined",
    )

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    tracking: Mapped[Optional["WorkflowTrackingRecord"]] = relationship(
        "WorkflowTrackingRecord",
        back_populates="order",
        uselist=False,
        lazy="selectin",
    )

    def item_at(self, index: int) -> Optional["OrderItem"]:
        """Item by position in the order, or None for an invalid index."""
        if 0 <= index < len(self.items):
            return self.items[index]
        return None

    @property
    def assigned_vehicle_id(self) -> Optional[str]:
        vehicle = (self.assignment_details or {}).get("assigned_vehicle") or {}
        return vehicle.get("vehicle_id")

    @property
    def assigned_driver_id(self) -> Optional[str]:
        driver = (self.assignment_details or {}).get("assigned_driver") or {}
        return driver.get("employee_id")

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, order_id={self.order_id!r}, status={self.status.value})>"


class OrderItem(BaseModel):
    """
    Order line owned by exactly one order.

    The three stage flags (packed, storage_verified, loading_verified) only
    become true through their verification operations; they are never
    inferred from the order status.
    """
    __tablename__ = "order_items"

    order_pk: Mapped[UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    product_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    # Free text magnitude + unit, e.g. "2kg", "0.5 kg", "1 bag"
    weight: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    # =========================================================================
    # Packing
    # =========================================================================
    packing_status: Mapped[PackingStatus] = mapped_column(
        Enum(PackingStatus, name="packing_status", values_callable=enum_values),
        nullable=False,
        default=PackingStatus.PENDING,
    )
    packed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    packed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    packed_by: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    # =========================================================================
    # Storage
    # =========================================================================
    storage_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    storage_verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    storage_verified_by: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    storage_condition: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # =========================================================================
    # Loading
    # =========================================================================
    loading_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    loading_verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    loading_verified_by: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    loading_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # [{complaint_id, stage, complaint_type, details, reported_by, reported_at, status}]
    complaints: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="items",
    )

    def complaints_for(self, stage: str) -> list[dict[str, Any]]:
        return [c for c in (self.complaints or []) if c.get("stage") == stage]

    def __repr__(self) -> str:
        return (
            f"<OrderItem(position={self.position}, product={self.product_name!r}, "
            f"qty={self.quantity})>"
        )

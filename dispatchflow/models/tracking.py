"""
Workflow tracking record model for DispatchFlow.

The tracking record is purely derived: it can be rebuilt at any time from
the order and its item flags. It exists to carry per-stage completion,
actor and payload detail that the single order status cannot express.
"""
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Any
from uuid import UUID

from sqlalchemy import String, Boolean, Enum, ForeignKey, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dispatchflow.models.base import BaseModel, JSONType, enum_values
from dispatchflow.models.enums import TrackingPriority

if TYPE_CHECKING:
    from dispatchflow.models.order import Order


class WorkflowTrackingRecord(BaseModel):
    """
    Seven-stage workflow view of one order.

    ``workflow_status`` format (see services.workflow.stages.WorkflowStatus):
    ```json
    {
        "pending":    {"completed": true, "completed_at": "...", "actor": {...}, "details": {}},
        "packed":     {"completed": true, ..., "details": {"packing_notes": "..."}},
        "storage":    {..., "details": {"storage_location": "A-3"}},
        "assigned":   {..., "details": {"assigned_driver": {...}, "assigned_by": {...}}},
        "loaded":     {..., "details": {"vehicle_info": {...}, "loading_details": {...}}},
        "in_transit": {..., "details": {"current_location": {...}}},
        "delivered":  {..., "details": {"customer_signature": "...", "customer_satisfaction": 5}}
    }
    ```
    """
    __tablename__ = "workflow_tracking"

    order_id: Mapped[str] = mapped_column(
        ForeignKey("orders.order_id"),
        unique=True,
        nullable=False,
        index=True,
    )

    customer_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("customers.id"),
        nullable=True,
        index=True,
    )

    # Mirror of Order.status, updated opportunistically
    current_status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )

    priority: Mapped[TrackingPriority] = mapped_column(
        Enum(TrackingPriority, name="tracking_priority", values_callable=enum_values),
        nullable=False,
        default=TrackingPriority.MEDIUM,
    )

    workflow_status: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
    )

    # Snapshot taken when the record is seeded (customer name/phone, address, totals)
    order_snapshot: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=True,
    )

    # {order_placed_at, packing_completed_at, driver_assigned_at, dispatched_at,
    #  estimated_delivery_time, actual_delivery_time}
    timing_metrics: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    last_reconciled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="tracking",
    )

    def __repr__(self) -> str:
        return (
            f"<WorkflowTrackingRecord(order_id={self.order_id!r}, "
            f"current_status={self.current_status!r})>"
        )

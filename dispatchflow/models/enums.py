"""
Enum type definitions for DispatchFlow.

``OrderStatus`` values are the lifecycle strings written by the operational
roles; they are stored verbatim.
"""
from enum import Enum


class OrderStatus(str, Enum):
    """Authoritative order lifecycle status."""
    CART_NOT_PAID = "cart-not-paid"
    ORDER_MADE_NOT_PAID = "order-made-not-paid"
    PAY_NOT_CONFIRMED = "pay-not-confirmed"
    ORDER_CONFIRMED = "order-confirmed"
    ORDER_NOT_PICKED = "order-not-picked"
    ISSUE_CUSTOMER = "issue-customer"
    CUSTOMER_CONFIRMED = "customer-confirmed"
    ORDER_REFUNDED = "order-refunded"
    PICKING_ORDER = "picking-order"              # Packing staff started
    ALLOCATED_DRIVER = "allocated-driver"        # Packing complete
    ASSIGNED_DISPATCH_OFFICER_2 = "assigned-dispatch-officer-2"  # Vehicle + driver bound
    READY_TO_PICKUP = "ready-to-pickup"          # Storage verified
    ORDER_NOT_PICKEDUP = "order-not-pickedup"
    ORDER_PICKED_UP = "order-picked-up"          # Loading verified
    ON_WAY = "on-way"                            # Route started
    DRIVER_CONFIRMED = "driver-confirmed"
    ORDER_PROCESSED = "order-processed"
    REFUND = "refund"
    COMPLAIN_ORDER = "complain-order"
    ISSUE_DRIVER = "issue-driver"
    PARCEL_RETURNED = "parcel-returned"
    ORDER_COMPLETE = "order-complete"

    @property
    def is_terminal(self) -> bool:
        """Orders in a terminal status are never mutated again."""
        return self in (
            OrderStatus.ORDER_COMPLETE,
            OrderStatus.ORDER_REFUNDED,
            OrderStatus.REFUND,
            OrderStatus.PARCEL_RETURNED,
        )


class PackingStatus(str, Enum):
    """Per-item packing state."""
    PENDING = "pending"
    PACKED = "packed"
    UNAVAILABLE = "unavailable"


class ComplaintStage(str, Enum):
    """Workflow phase in which an item complaint was raised."""
    PACKING = "packing"
    STORAGE = "storage"
    LOADING = "loading"


class TrackingPriority(str, Enum):
    """
    Tracking priority derived from the order amount.

    - HIGH: total >= 200
    - MEDIUM: total >= 100
    - LOW: below 100
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_amount(cls, amount: float) -> "TrackingPriority":
        if amount >= 200:
            return cls.HIGH
        if amount >= 100:
            return cls.MEDIUM
        return cls.LOW


class EmployeeRole(str, Enum):
    """Operational roles that touch an order."""
    PACKING_STAFF = "packing-staff"
    STORAGE_OFFICER = "storage-officer"
    DISPATCH_OFFICER_1 = "dispatch-officer-1"
    DISPATCH_OFFICER_2 = "dispatch-officer-2"
    DRIVER = "driver"

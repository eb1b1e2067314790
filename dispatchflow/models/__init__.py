"""
SQLAlchemy ORM Models for DispatchFlow.

This module exports all domain models and enums for the order
fulfilment workflow and dispatch engine.
"""

# Enums
from dispatchflow.models.enums import (
    OrderStatus,
    PackingStatus,
    ComplaintStage,
    TrackingPriority,
    EmployeeRole,
)

# Base
from dispatchflow.models.base import BaseModel, TimestampMixin, UUIDPrimaryKeyMixin

# Domain Models
from dispatchflow.models.customer import Customer
from dispatchflow.models.employee import Employee
from dispatchflow.models.vehicle import VehicleType
from dispatchflow.models.order import Order, OrderItem
from dispatchflow.models.tracking import WorkflowTrackingRecord

__all__ = [
    # Enums
    "OrderStatus",
    "PackingStatus",
    "ComplaintStage",
    "TrackingPriority",
    "EmployeeRole",
    # Base
    "BaseModel",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # Domain Models
    "Customer",
    "Employee",
    "VehicleType",
    "Order",
    "OrderItem",
    "WorkflowTrackingRecord",
]

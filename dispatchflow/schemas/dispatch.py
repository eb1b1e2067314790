"""
Dispatch Pydantic schemas: queue, vehicle suggestion and assignment.
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from dispatchflow.schemas.base import BaseSchema


class RequirementsSchema(BaseSchema):
    """Estimated load of an order."""
    volume: float = Field(..., description="Volume in m³")
    weight: float = Field(..., description="Weight in kg")
    package_count: int


class DriverRef(BaseSchema):
    employee_id: str = Field(..., min_length=1, max_length=50)
    employee_name: Optional[str] = None


class AssignRequest(BaseSchema):
    """Assign a vehicle and driver to one order."""
    vehicle_id: str = Field(..., description="Catalog vehicle id or vehicle type name")
    driver: DriverRef
    staff_id: str = Field(..., min_length=1, max_length=50)
    staff_name: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class BulkAssignEntry(BaseSchema):
    order_id: str
    vehicle_id: str
    driver: DriverRef
    notes: Optional[str] = Field(None, max_length=1000)


class BulkAssignRequest(BaseSchema):
    staff_id: str = Field(..., min_length=1, max_length=50)
    staff_name: str = Field(..., min_length=1, max_length=100)
    assignments: list[BulkAssignEntry] = Field(..., min_length=1)


class AssignmentResponse(BaseSchema):
    """The order's assignment details after a successful assignment."""
    assigned_vehicle: dict[str, Any]
    assigned_driver: dict[str, Any]
    assigned_at: str
    assigned_by: dict[str, Any]
    notes: Optional[str] = None
    requirements: RequirementsSchema


class BulkAssignResult(BaseSchema):
    order_id: str
    success: bool
    assignment: Optional[AssignmentResponse] = None
    error: Optional[dict[str, Any]] = None


class BulkAssignResponse(BaseSchema):
    results: list[BulkAssignResult]
    success_count: int
    failure_count: int


class QueueEntry(BaseSchema):
    """Order waiting for vehicle assignment."""
    order_id: str
    customer_name: Optional[str]
    priority: str
    delivery_date: Optional[datetime]
    time_slot: Optional[str]
    delivery_address: dict[str, Any] = Field(default_factory=dict)
    requirements: RequirementsSchema
    total_amount: float
    items_count: int
    storage_location: Optional[str]
    hours_until_delivery: Optional[int]
    is_urgent: bool


class VehicleEvaluation(BaseSchema):
    vehicle: dict[str, Any]
    suitable: bool
    violations: list[dict[str, Any]]
    utilization: dict[str, Optional[float]]


class VehicleSuggestionResponse(BaseSchema):
    order_id: str
    requirements: RequirementsSchema
    suggested_vehicle: Optional[dict[str, Any]]
    vehicles: list[VehicleEvaluation]

"""
Dispatch package.

Requirement estimation, vehicle fit selection and vehicle/driver assignment.
"""

from dispatchflow.services.dispatch.requirements import (
    OrderRequirements,
    estimate_requirements,
    parse_weight,
)
from dispatchflow.services.dispatch.vehicle_fit import (
    VehicleCapacity,
    capacity_violations,
    is_feasible,
    select_vehicle,
    evaluate_catalog,
)
from dispatchflow.services.dispatch.assignment import (
    BulkAssignmentResult,
    assign_vehicle,
    bulk_assign,
    require_driver,
    reserve_driver,
    release_driver,
    suggest_vehicle,
    available_drivers,
    build_dispatch_queue,
)

__all__ = [
    # Requirements
    "OrderRequirements",
    "estimate_requirements",
    "parse_weight",
    # Vehicle fit
    "VehicleCapacity",
    "capacity_violations",
    "is_feasible",
    "select_vehicle",
    "evaluate_catalog",
    # Assignment
    "BulkAssignmentResult",
    "assign_vehicle",
    "bulk_assign",
    "require_driver",
    "reserve_driver",
    "release_driver",
    "suggest_vehicle",
    "available_drivers",
    "build_dispatch_queue",
]

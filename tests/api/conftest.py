"""API test fixtures -- helpers for configuring mock session returns."""
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4


def make_mock_result(scalar_value=None, scalars_list=None):
    """Create a mock SQLAlchemy Result object."""
    result = MagicMock()
    result.scalar_one_or_none = MagicMock(return_value=scalar_value)

    scalars_mock = MagicMock()
    scalars_mock.all = MagicMock(return_value=scalars_list or [])
    scalars_mock.unique = MagicMock(return_value=scalars_mock)
    result.scalars = MagicMock(return_value=scalars_mock)
    result.first = MagicMock(return_value=None)
    result.rowcount = len(scalars_list) if scalars_list else (1 if scalar_value else 0)

    return result


def make_mock_vehicle_type(vehicle_id=None, vehicle_type="van", max_packages=20, is_active=True):
    """Create a mock VehicleType ORM object."""
    vehicle = MagicMock()
    vehicle.id = vehicle_id or uuid4()
    vehicle.vehicle_type = vehicle_type
    vehicle.category = "light"
    vehicle.display_name = vehicle_type.title()
    vehicle.max_weight = Decimal("500.00")
    vehicle.max_volume = Decimal("5.00")
    vehicle.max_height = None
    vehicle.max_length = None
    vehicle.max_width = None
    vehicle.capacity_limit_percent = 80
    vehicle.effective_max_volume = 5.0
    vehicle.max_packages = max_packages
    vehicle.priority = 100
    vehicle.is_active = is_active
    vehicle.created_at = datetime.now()
    vehicle.updated_at = datetime.now()
    return vehicle


def make_assignment_details(order_id="ORD-001", vehicle_type="van", employee_id="DRV-001"):
    """Assignment details as returned by the assignment service."""
    return {
        "assigned_vehicle": {
            "vehicle_id": str(uuid4()),
            "vehicle_type": vehicle_type,
            "display_name": vehicle_type.title(),
            "max_volume": 5.0,
            "max_weight": 500.0,
            "max_packages": 20,
        },
        "assigned_driver": {
            "employee_id": employee_id,
            "employee_name": "Test Driver",
            "phone": "0711111111",
        },
        "assigned_at": "2026-10-18T12:00:00+00:00",
        "assigned_by": {"staff_id": "DO2-1", "staff_name": "Dispatch Officer"},
        "notes": None,
        "requirements": {"volume": 0.4, "weight": 4.0, "package_count": 3},
    }


def make_workflow_summary(order_id="ORD-001", status="allocated-driver", completed=2):
    """Workflow summary as returned by the reconciler read helpers."""
    names = ["pending", "packed", "storage", "assigned", "loaded", "in_transit", "delivered"]
    stages = {
        name: {
            "completed": i < completed,
            "completed_at": "2026-10-18T12:00:00+00:00" if i < completed else None,
            "actor": {"employee_id": "SYSTEM", "employee_name": "Order Confirmation"} if i < completed else None,
            "details": {},
        }
        for i, name in enumerate(names)
    }
    return {
        "order_id": order_id,
        "current_status": status,
        "priority": "medium",
        "progress": {name: i < completed for i, name in enumerate(names)},
        "progress_percent": round(completed / 7 * 100),
        "current_stage": names[completed - 1] if completed else None,
        "stages": stages,
        "timing_metrics": {},
        "order_snapshot": {},
        "last_reconciled_at": None,
    }

"""
Domain exceptions for DispatchFlow.

Every exception carries a machine-readable ``reason`` so callers (the HTTP
layer, bulk assignment results, audit logs) can react without parsing
messages.
"""
from typing import Any, Optional


class DispatchError(Exception):
    """Base class for all domain errors."""

    reason: str = "dispatch error"
    status_code: int = 400

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.reason
        self.context = context
        super().__init__(self.message)

    def to_detail(self) -> dict[str, Any]:
        """Serializable error detail."""
        detail: dict[str, Any] = {"reason": self.reason, "message": self.message}
        detail.update(self.context)
        return detail


# =============================================================================
# NotFound
# =============================================================================

class NotFoundError(DispatchError):
    reason = "not found"
    status_code = 404


class OrderNotFound(NotFoundError):
    reason = "order not found"

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found", order_id=order_id)


class VehicleNotFound(NotFoundError):
    reason = "vehicle not found"

    def __init__(self, vehicle_id: Any):
        super().__init__(
            f"Vehicle {vehicle_id} not found or inactive",
            vehicle_id=str(vehicle_id),
        )


class DriverNotFound(NotFoundError):
    reason = "driver not found"

    def __init__(self, employee_id: str):
        super().__init__(f"Driver {employee_id} not found", employee_id=employee_id)


class TrackingRecordNotFound(NotFoundError):
    reason = "tracking record not found"

    def __init__(self, order_id: str):
        super().__init__(
            f"No workflow tracking record for order {order_id}",
            order_id=order_id,
        )


# =============================================================================
# Capacity
# =============================================================================

class CapacityExceeded(DispatchError):
    """
    Order requirements exceed the requested vehicle.

    ``violations`` lists every failed constraint with the required amount,
    the vehicle capacity and the excess, so a dispatcher can pick another
    vehicle without re-deriving the requirements.
    """
    reason = "capacity exceeded"
    status_code = 409

    def __init__(self, vehicle_id: Any, violations: list[dict[str, Any]]):
        constraints = ", ".join(v["constraint"] for v in violations)
        super().__init__(
            f"Order requirements exceed vehicle capacity ({constraints})",
            vehicle_id=str(vehicle_id),
            violations=violations,
        )
        self.violations = violations


class DriverUnavailable(DispatchError):
    """Employee exists but cannot be bound as a driver."""
    reason = "driver unavailable"
    status_code = 409

    def __init__(self, employee_id: str, problems: list[str]):
        super().__init__(
            f"Employee {employee_id} cannot be assigned as a driver ({', '.join(problems)})",
            employee_id=employee_id,
            problems=problems,
        )


class DriverAtCapacity(DispatchError):
    reason = "driver at capacity"
    status_code = 409

    def __init__(
        self,
        employee_id: str,
        current_assignments: Optional[int] = None,
        max_assignments: Optional[int] = None,
    ):
        super().__init__(
            f"Driver {employee_id} has no free assignment slots "
            f"({current_assignments}/{max_assignments})",
            employee_id=employee_id,
            current_assignments=current_assignments,
            max_assignments=max_assignments,
        )


# =============================================================================
# Workflow
# =============================================================================

class InvalidStageTransition(DispatchError):
    reason = "invalid stage transition"
    status_code = 400

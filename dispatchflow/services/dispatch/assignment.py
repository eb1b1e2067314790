"""
Assignment orchestrator.

Binds a vehicle and a driver to an order that has completed storage but
has not been assigned yet. The four effects of an assignment (order
assignment details, order status, driver counter, tracking ``assigned``
stage) are flushed inside one savepoint: all of them apply or none do.

The driver counter is reserved with a single conditional UPDATE, so two
concurrent assignments can never push a driver past ``max_assignments``.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from dispatchflow.core.config import settings
from dispatchflow.core.exceptions import (
    CapacityExceeded,
    DispatchError,
    DriverAtCapacity,
    DriverNotFound,
    DriverUnavailable,
    InvalidStageTransition,
)
from dispatchflow.core.timeutils import parse_iso, to_iso, utcnow
from dispatchflow.models import Employee, Order, OrderStatus, TrackingPriority
from dispatchflow.services.dispatch.requirements import estimate_requirements
from dispatchflow.services.dispatch.vehicle_fit import (
    VehicleCapacity,
    capacity_violations,
    evaluate_catalog,
    select_vehicle,
)
from dispatchflow.services.queries import active_vehicles, load_employee, load_order, load_vehicle
from dispatchflow.services.workflow.reconciler import ensure_tracking_record, reconcile_record
from dispatchflow.services.workflow.stages import Stage, read_workflow, write_workflow

logger = logging.getLogger(__name__)

DriverRef = Union[str, dict[str, Any]]


@dataclass
class BulkAssignmentResult:
    """Per-order outcome of a bulk assignment."""
    results: list[dict[str, Any]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r["success"])

    @property
    def failure_count(self) -> int:
        return len(self.results) - self.success_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": self.results,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
        }


def _driver_id(driver: DriverRef) -> str:
    if isinstance(driver, dict):
        driver_id = driver.get("employee_id") or driver.get("driver_id")
    else:
        driver_id = driver
    if not driver_id:
        raise DriverNotFound(str(driver))
    return str(driver_id)


# =============================================================================
# Driver counter
# =============================================================================

def require_driver(employee: Employee) -> None:
    """
    Check an employee can be bound as a driver.

    Capacity is not checked here; reserve_driver does that atomically.

    Raises:
        DriverUnavailable: the employee fails any of the driver checks
    """
    problems = []
    if not employee.is_driver:
        problems.append("not a driver")
    if not employee.is_activated:
        problems.append("not activated")
    if employee.is_blocked:
        problems.append("blocked")
    if problems:
        raise DriverUnavailable(employee.employee_id, problems)


def reserve_driver(session: Session, employee: Employee) -> None:
    """
    Take one assignment slot from a driver.

    Raises:
        DriverAtCapacity: if the driver has no free slot at UPDATE time
    """
    stmt = (
        update(Employee)
        .where(
            Employee.employee_id == employee.employee_id,
            Employee.current_assignments < Employee.max_assignments,
        )
        .values(current_assignments=Employee.current_assignments + 1)
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    session.refresh(employee)
    if result.rowcount == 0:
        raise DriverAtCapacity(
            employee.employee_id,
            current_assignments=employee.current_assignments,
            max_assignments=employee.max_assignments,
        )


def release_driver(session: Session, employee_id: str) -> bool:
    """
    Return one assignment slot to a driver (terminal completion or failure).

    The counter never goes below zero.

    Returns:
        True if a slot was released
    """
    stmt = (
        update(Employee)
        .where(
            Employee.employee_id == employee_id,
            Employee.current_assignments > 0,
        )
        .values(current_assignments=Employee.current_assignments - 1)
        .execution_options(synchronize_session=False)
    )
    released = session.execute(stmt).rowcount > 0
    if not released:
        logger.warning(f"Driver {employee_id} had no assignment to release")
    return released


# =============================================================================
# Assignment
# =============================================================================

def assign_vehicle(
    session: Session,
    order_id: str,
    vehicle_id: Any,
    driver: DriverRef,
    staff_id: str,
    staff_name: str,
    notes: Optional[str] = None,
) -> dict[str, Any]:
    """
    Assign a vehicle and driver to an order.

    Args:
        session: Database session (the caller commits)
        order_id: Business order id
        vehicle_id: Catalog vehicle id or vehicle_type name
        driver: Driver employee_id, or a dict carrying it
        staff_id: Assigning dispatch officer id
        staff_name: Assigning dispatch officer name
        notes: Free-text assignment notes

    Returns:
        The order's new assignment details

    Raises:
        OrderNotFound, VehicleNotFound, DriverNotFound
        InvalidStageTransition: storage not completed, or already assigned
        CapacityExceeded: requirements exceed the requested vehicle
        DriverUnavailable: employee is not an active, unblocked driver
        DriverAtCapacity: driver has no free assignment slot
    """
    with session.begin_nested():
        details = _assign(session, order_id, vehicle_id, driver, staff_id, staff_name, notes)
        session.flush()

    logger.info(
        f"Order {order_id} assigned to vehicle {details['assigned_vehicle']['vehicle_type']} "
        f"and driver {details['assigned_driver']['employee_id']} by {staff_id}"
    )
    return details


def _assign(
    session: Session,
    order_id: str,
    vehicle_id: Any,
    driver: DriverRef,
    staff_id: str,
    staff_name: str,
    notes: Optional[str],
) -> dict[str, Any]:
    order = load_order(session, order_id)

    record, _ = ensure_tracking_record(session, order)
    reconcile_record(order, record)
    workflow = read_workflow(record)
    if not workflow.is_completed(Stage.STORAGE):
        raise InvalidStageTransition(
            f"Order {order_id} has not completed storage",
            order_id=order_id,
            status=order.status.value,
        )
    if workflow.is_completed(Stage.ASSIGNED):
        raise InvalidStageTransition(
            f"Order {order_id} is already assigned",
            order_id=order_id,
            status=order.status.value,
        )

    vehicle = load_vehicle(session, vehicle_id)
    capacity = VehicleCapacity.from_model(vehicle)
    requirements = estimate_requirements(order.items)
    violations = capacity_violations(requirements, capacity)
    if violations:
        raise CapacityExceeded(capacity.vehicle_id, violations)

    employee = load_employee(session, _driver_id(driver))
    require_driver(employee)
    reserve_driver(session, employee)

    now = utcnow()
    driver_info = {**employee.as_actor(), "phone": employee.phone}
    assigned_by = {"staff_id": staff_id, "staff_name": staff_name}
    vehicle_info = {
        "vehicle_id": capacity.vehicle_id,
        "vehicle_type": capacity.vehicle_type,
        "display_name": capacity.label,
        "max_volume": capacity.max_volume,
        "max_weight": capacity.max_weight,
        "max_packages": capacity.max_packages,
    }
    details = {
        "assigned_vehicle": vehicle_info,
        "assigned_driver": driver_info,
        "assigned_at": to_iso(now),
        "assigned_by": assigned_by,
        "notes": notes,
        "requirements": requirements.to_dict(),
    }

    order.assignment_details = details
    order.status = OrderStatus.ASSIGNED_DISPATCH_OFFICER_2

    workflow.complete(
        Stage.ASSIGNED,
        at=now,
        actor={"employee_id": staff_id, "employee_name": staff_name},
        details={
            "assigned_vehicle": vehicle_info,
            "assigned_driver": driver_info,
            "assigned_by": assigned_by,
        },
    )
    write_workflow(record, workflow)
    record.current_status = order.status.value
    record.timing_metrics = {**(record.timing_metrics or {}), "driver_assigned_at": to_iso(now)}

    return details


def bulk_assign(
    session: Session,
    entries: Iterable[dict[str, Any]],
    staff_id: str,
    staff_name: str,
) -> BulkAssignmentResult:
    """
    Assign many orders; each entry succeeds or fails on its own.

    Args:
        entries: [{"order_id", "vehicle_id", "driver", "notes"?}, ...]
    """
    result = BulkAssignmentResult()
    for entry in entries:
        order_id = entry.get("order_id")
        try:
            details = assign_vehicle(
                session,
                order_id=order_id,
                vehicle_id=entry.get("vehicle_id"),
                driver=entry.get("driver"),
                staff_id=staff_id,
                staff_name=staff_name,
                notes=entry.get("notes"),
            )
        except DispatchError as exc:
            logger.warning(f"Bulk assignment rejected for order {order_id}: {exc.reason}")
            result.results.append({
                "order_id": order_id,
                "success": False,
                "error": exc.to_detail(),
            })
            continue
        result.results.append({
            "order_id": order_id,
            "success": True,
            "assignment": details,
        })

    logger.info(
        f"Bulk assignment by {staff_id}: {result.success_count} succeeded, "
        f"{result.failure_count} failed"
    )
    return result


# =============================================================================
# Dispatcher views
# =============================================================================

def suggest_vehicle(session: Session, order_id: str) -> dict[str, Any]:
    """Requirements, the suggested vehicle and the annotated active catalog."""
    order = load_order(session, order_id)
    requirements = estimate_requirements(order.items)
    catalog = [VehicleCapacity.from_model(v) for v in active_vehicles(session)]
    suggested = select_vehicle(requirements, catalog)
    return {
        "order_id": order.order_id,
        "requirements": requirements.to_dict(),
        "suggested_vehicle": suggested.to_dict() if suggested else None,
        "vehicles": evaluate_catalog(requirements, catalog),
    }


def available_drivers(session: Session) -> list[Employee]:
    """Active drivers with at least one free assignment slot."""
    stmt = (
        select(Employee)
        .where(
            Employee.is_activated.is_(True),
            Employee.is_blocked.is_(False),
            Employee.current_assignments < Employee.max_assignments,
        )
        .order_by(Employee.current_assignments, Employee.employee_id)
    )
    return [e for e in session.scalars(stmt).all() if e.is_driver]


def _queue_priority(order: Order, now: datetime) -> tuple[str, Optional[float]]:
    priority = TrackingPriority.from_amount(float(order.total_amount or 0))
    due = parse_iso(order.delivery_date)
    hours = None
    if due is not None:
        hours = (due - now) / timedelta(hours=1)
        if hours <= settings.urgent_delivery_hours:
            priority = TrackingPriority.HIGH
    return priority.value, hours


_PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}


def build_dispatch_queue(session: Session, now: Optional[datetime] = None) -> list[dict[str, Any]]:
    """
    Orders waiting for a vehicle: storage completed, not yet assigned.

    Sorted by priority (orders due within settings.urgent_delivery_hours are
    high) then delivery date. Tracking records are seeded and reconciled on
    the way.
    """
    now = now or utcnow()
    orders = session.scalars(
        select(Order).where(Order.status == OrderStatus.READY_TO_PICKUP)
    ).all()

    queue = []
    for order in orders:
        record, _ = ensure_tracking_record(session, order)
        reconcile_record(order, record, now=now)
        workflow = read_workflow(record)
        if not workflow.is_completed(Stage.STORAGE) or workflow.is_completed(Stage.ASSIGNED):
            continue

        priority, hours = _queue_priority(order, now)
        queue.append({
            "order_id": order.order_id,
            "customer_name": order.customer.name if order.customer else None,
            "priority": priority,
            "delivery_date": order.delivery_date,
            "time_slot": order.time_slot,
            "delivery_address": order.delivery_address or {},
            "requirements": estimate_requirements(order.items).to_dict(),
            "total_amount": float(order.total_amount or 0),
            "items_count": len(order.items),
            "storage_location": (order.storage_details or {}).get("storage_location"),
            "hours_until_delivery": round(hours) if hours is not None else None,
            "is_urgent": hours is not None and hours <= settings.urgent_delivery_hours,
        })
    session.flush()

    far_future = float("inf")
    queue.sort(key=lambda q: (
        _PRIORITY_RANK[q["priority"]],
        parse_iso(q["delivery_date"]).timestamp() if q["delivery_date"] else far_future,
    ))
    return queue

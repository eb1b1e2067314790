"""
Order mutation surface.

Operations performed by the operational roles (packing staff, storage
officer, dispatch officer 2, driver). Each one validates its prerequisites
before touching anything, writes the order, and then records the matching
workflow stage on the tracking record. The tracking write is a convenience;
the reconciler repairs the record if it is ever missed.

Every operation leaves the commit to the caller.
"""
import logging
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from dispatchflow.core.exceptions import InvalidStageTransition
from dispatchflow.core.timeutils import to_iso, utcnow
from dispatchflow.models import (
    ComplaintStage,
    Order,
    OrderItem,
    OrderStatus,
    PackingStatus,
)
from dispatchflow.services.dispatch.assignment import release_driver
from dispatchflow.services.queries import load_order
from dispatchflow.services.workflow.reconciler import ensure_tracking_record, reconcile_record
from dispatchflow.services.workflow.stages import Stage, read_workflow, write_workflow

logger = logging.getLogger(__name__)

# Complaint types that take an item out of the packing run
UNAVAILABLE_COMPLAINT_TYPES = frozenset({
    "not_available",
    "damaged",
    "expired",
    "insufficient_stock",
})

PACKING_STATUSES = frozenset({OrderStatus.ORDER_CONFIRMED, OrderStatus.PICKING_ORDER})
STORAGE_STATUSES = frozenset({OrderStatus.ALLOCATED_DRIVER})
LOADING_STATUSES = frozenset({OrderStatus.ASSIGNED_DISPATCH_OFFICER_2})
DELIVERY_STATUSES = frozenset({OrderStatus.ON_WAY, OrderStatus.DRIVER_CONFIRMED})

_COMPLAINT_STATUSES = {
    ComplaintStage.PACKING: PACKING_STATUSES,
    ComplaintStage.STORAGE: STORAGE_STATUSES,
    ComplaintStage.LOADING: LOADING_STATUSES,
}


# =============================================================================
# Helpers
# =============================================================================

def _staff(actor_id: str, actor_name: str) -> dict[str, Any]:
    return {"staff_id": actor_id, "staff_name": actor_name}


def _actor(actor_id: str, actor_name: str) -> dict[str, Any]:
    return {"employee_id": actor_id, "employee_name": actor_name}


def _require_status(order: Order, allowed: frozenset, action: str) -> None:
    if order.status not in allowed:
        raise InvalidStageTransition(
            f"Cannot {action} for order {order.order_id} in status {order.status.value}",
            order_id=order.order_id,
            status=order.status.value,
            allowed_statuses=sorted(s.value for s in allowed),
        )


def _require_item(order: Order, item_index: int) -> OrderItem:
    item = order.item_at(item_index)
    if item is None:
        raise InvalidStageTransition(
            f"Order {order.order_id} has no item at index {item_index}",
            order_id=order.order_id,
            item_index=item_index,
        )
    return item


def _progress(done: int, total: int) -> int:
    return round(done / total * 100) if total else 0


def _record_stage(
    session: Session,
    order: Order,
    stage: Stage,
    actor: dict[str, Any],
    details: Optional[dict[str, Any]] = None,
) -> None:
    """Write a stage directly, then let the reconciler fill anything behind it."""
    now = utcnow()
    record, _ = ensure_tracking_record(session, order)
    workflow = read_workflow(record)
    workflow.complete(stage, at=now, actor=actor, details=details)
    write_workflow(record, workflow)
    reconcile_record(order, record, now=now)


def _update_stage_details(session: Session, order: Order, stage: Stage, details: dict[str, Any]) -> None:
    record, _ = ensure_tracking_record(session, order)
    workflow = read_workflow(record)
    if workflow.update_details(stage, details):
        write_workflow(record, workflow)


# =============================================================================
# Packing
# =============================================================================

def start_packing(session: Session, order_id: str, actor_id: str, actor_name: str) -> dict[str, Any]:
    order = load_order(session, order_id)
    _require_status(order, PACKING_STATUSES, "start packing")

    order.status = OrderStatus.PICKING_ORDER
    order.packing_details = {
        **(order.packing_details or {}),
        "started_at": to_iso(utcnow()),
        "staff": _staff(actor_id, actor_name),
        "total_items": len(order.items),
    }
    _record_stage(session, order, Stage.PENDING, _actor(actor_id, actor_name))
    session.flush()

    logger.info(f"Packing started for order {order_id} by {actor_id}")
    return {"order_id": order_id, "status": order.status.value}


def pack_item(
    session: Session,
    order_id: str,
    item_index: int,
    actor_id: str,
    actor_name: str,
) -> dict[str, Any]:
    """Mark one item packed and refresh the packing progress."""
    order = load_order(session, order_id)
    _require_status(order, PACKING_STATUSES, "pack items")
    item = _require_item(order, item_index)

    now = utcnow()
    item.packing_status = PackingStatus.PACKED
    item.packed = True
    item.packed_at = now
    item.packed_by = _staff(actor_id, actor_name)

    packed = sum(1 for i in order.items if i.packing_status == PackingStatus.PACKED)
    total = len(order.items)
    order.packing_details = {
        **(order.packing_details or {}),
        "total_items_packed": packed,
        "total_items_requested": total,
        "progress": _progress(packed, total),
    }
    session.flush()

    return {
        "order_id": order_id,
        "item_index": item_index,
        "packed_items": packed,
        "total_items": total,
        "packing_progress": _progress(packed, total),
    }


def report_item_complaint(
    session: Session,
    order_id: str,
    item_index: int,
    actor_id: str,
    actor_name: str,
    stage: ComplaintStage,
    complaint_type: str,
    details: Optional[str] = None,
) -> dict[str, Any]:
    """
    Attach a complaint to an item.

    Packing complaints of an unavailability type mark the item unavailable,
    which lets packing complete without it.
    """
    stage = ComplaintStage(stage)
    order = load_order(session, order_id)
    _require_status(order, _COMPLAINT_STATUSES[stage], f"report a {stage.value} complaint")
    item = _require_item(order, item_index)

    complaint = {
        "complaint_id": f"ITEM_COMP_{uuid4().hex[:12].upper()}",
        "stage": stage.value,
        "complaint_type": complaint_type,
        "details": details,
        "reported_by": _staff(actor_id, actor_name),
        "reported_at": to_iso(utcnow()),
        "status": "open",
    }
    item.complaints = [*(item.complaints or []), complaint]

    if stage == ComplaintStage.PACKING:
        if complaint_type in UNAVAILABLE_COMPLAINT_TYPES:
            item.packing_status = PackingStatus.UNAVAILABLE
        order.packing_details = {**(order.packing_details or {}), "has_complaints": True}
    elif stage == ComplaintStage.STORAGE:
        order.storage_details = {**(order.storage_details or {}), "has_complaints": True}
    else:
        order.loading_details = {**(order.loading_details or {}), "has_complaints": True}
    session.flush()

    logger.warning(
        f"{stage.value.capitalize()} complaint {complaint['complaint_id']} on order "
        f"{order_id} item {item_index}: {complaint_type}"
    )
    return complaint


def complete_packing(
    session: Session,
    order_id: str,
    actor_id: str,
    actor_name: str,
    notes: Optional[str] = None,
) -> dict[str, Any]:
    """Finish packing; every item must be packed or unavailable."""
    order = load_order(session, order_id)
    _require_status(order, PACKING_STATUSES, "complete packing")

    pending = [
        i.position for i in order.items
        if i.packing_status not in (PackingStatus.PACKED, PackingStatus.UNAVAILABLE)
    ]
    if pending:
        raise InvalidStageTransition(
            "Cannot complete packing, some items are still pending",
            order_id=order_id,
            pending_items=pending,
        )

    order.status = OrderStatus.ALLOCATED_DRIVER
    order.packing_details = {
        **(order.packing_details or {}),
        "completed_at": to_iso(utcnow()),
        "staff": (order.packing_details or {}).get("staff") or _staff(actor_id, actor_name),
        "notes": notes,
        "progress": 100,
    }
    _record_stage(
        session, order, Stage.PACKED,
        _actor(actor_id, actor_name),
        {"packing_notes": notes},
    )
    session.flush()

    logger.info(f"Packing completed for order {order_id} by {actor_id}")
    return {"order_id": order_id, "status": order.status.value}


# =============================================================================
# Storage
# =============================================================================

def verify_storage_item(
    session: Session,
    order_id: str,
    item_index: int,
    actor_id: str,
    actor_name: str,
    verified: bool = True,
    condition: Optional[str] = None,
) -> dict[str, Any]:
    order = load_order(session, order_id)
    _require_status(order, STORAGE_STATUSES, "verify storage")
    item = _require_item(order, item_index)

    item.storage_verified = bool(verified)
    item.storage_verified_at = utcnow() if verified else None
    item.storage_verified_by = _staff(actor_id, actor_name) if verified else None
    item.storage_condition = condition

    done = sum(1 for i in order.items if i.storage_verified)
    total = len(order.items)
    order.storage_details = {
        **(order.storage_details or {}),
        "total_items_verified": done,
        "total_items_requested": total,
        "progress": _progress(done, total),
    }
    session.flush()

    return {
        "order_id": order_id,
        "item_index": item_index,
        "verified_items": done,
        "total_items": total,
        "verification_progress": _progress(done, total),
    }


def complete_storage(
    session: Session,
    order_id: str,
    actor_id: str,
    actor_name: str,
    storage_location: Optional[str] = None,
    notes: Optional[str] = None,
) -> dict[str, Any]:
    """Finish storage verification; every item verified or carrying a storage complaint."""
    order = load_order(session, order_id)
    _require_status(order, STORAGE_STATUSES, "complete storage")

    pending = [
        i.position for i in order.items
        if not i.storage_verified and not i.complaints_for(ComplaintStage.STORAGE.value)
    ]
    if pending:
        raise InvalidStageTransition(
            "Cannot complete storage verification, some items are still pending",
            order_id=order_id,
            pending_items=pending,
        )

    order.status = OrderStatus.READY_TO_PICKUP
    order.storage_details = {
        **(order.storage_details or {}),
        "completed_at": to_iso(utcnow()),
        "staff": _staff(actor_id, actor_name),
        "storage_location": storage_location,
        "notes": notes,
        "progress": 100,
    }
    _record_stage(
        session, order, Stage.STORAGE,
        _actor(actor_id, actor_name),
        {"storage_location": storage_location, "storage_notes": notes},
    )
    session.flush()

    logger.info(f"Storage verification completed for order {order_id} by {actor_id}")
    return {"order_id": order_id, "status": order.status.value}


# =============================================================================
# Loading
# =============================================================================

def verify_loading_item(
    session: Session,
    order_id: str,
    item_index: int,
    actor_id: str,
    actor_name: str,
    verified: bool = True,
    notes: Optional[str] = None,
) -> dict[str, Any]:
    order = load_order(session, order_id)
    _require_status(order, LOADING_STATUSES, "verify loading")
    item = _require_item(order, item_index)

    item.loading_verified = bool(verified)
    item.loading_verified_at = utcnow() if verified else None
    item.loading_verified_by = _staff(actor_id, actor_name) if verified else None
    item.loading_notes = notes

    loaded = sum(1 for i in order.items if i.loading_verified)
    total = len(order.items)
    progress = _progress(loaded, total)
    order.loading_details = {
        **(order.loading_details or {}),
        "total_items_loaded": loaded,
        "total_items_requested": total,
        "progress": progress,
    }
    _update_stage_details(
        session, order, Stage.LOADED,
        {"loading_details": {
            "loading_progress": progress,
            "total_items_loaded": loaded,
            "total_items_requested": total,
        }},
    )
    session.flush()

    return {
        "order_id": order_id,
        "item_index": item_index,
        "loaded_items": loaded,
        "total_items": total,
        "loading_progress": progress,
    }


def complete_loading(
    session: Session,
    order_id: str,
    actor_id: str,
    actor_name: str,
    notes: Optional[str] = None,
) -> dict[str, Any]:
    """Finish loading; every item must be loading-verified."""
    order = load_order(session, order_id)
    _require_status(order, LOADING_STATUSES, "complete loading")

    unverified = [i.position for i in order.items if not i.loading_verified]
    if unverified:
        raise InvalidStageTransition(
            "Cannot complete loading, some items are not verified",
            order_id=order_id,
            pending_items=unverified,
        )

    total = len(order.items)
    order.status = OrderStatus.ORDER_PICKED_UP
    order.loading_details = {
        **(order.loading_details or {}),
        "completed_at": to_iso(utcnow()),
        "staff": _staff(actor_id, actor_name),
        "notes": notes,
        "progress": 100,
        "total_items_loaded": total,
        "total_items_requested": total,
        "ready_for_dispatch": True,
    }
    _record_stage(
        session, order, Stage.LOADED,
        _actor(actor_id, actor_name),
        {
            "vehicle_info": (order.assignment_details or {}).get("assigned_vehicle"),
            "loading_details": {
                "loading_progress": 100,
                "total_items_loaded": total,
                "total_items_requested": total,
                "loading_notes": notes,
            },
        },
    )
    session.flush()

    logger.info(f"Loading completed for order {order_id} by {actor_id}")
    return {"order_id": order_id, "status": order.status.value}


# =============================================================================
# Route & Delivery
# =============================================================================

def _matches_vehicle(order: Order, vehicle_id: str) -> bool:
    vehicle = (order.assignment_details or {}).get("assigned_vehicle") or {}
    return str(vehicle_id) in (str(order.assigned_vehicle_id), str(vehicle.get("vehicle_type")))


def start_route(
    session: Session,
    vehicle_id: str,
    driver_id: str,
    driver_name: str,
) -> dict[str, Any]:
    """
    Put every loaded order of a vehicle on the road.

    Orders are processed independently; one failure is logged and skipped.

    Raises:
        InvalidStageTransition: no loaded order is assigned to the vehicle
    """
    orders = session.scalars(
        select(Order)
        .where(Order.status == OrderStatus.ORDER_PICKED_UP)
        .order_by(Order.order_id)
    ).all()
    candidates = [o for o in orders if _matches_vehicle(o, vehicle_id)]
    if not candidates:
        raise InvalidStageTransition(
            f"No loaded orders found for vehicle {vehicle_id}",
            vehicle_id=str(vehicle_id),
        )

    started: list[str] = []
    errors: list[dict[str, Any]] = []
    for order in candidates:
        order_id = order.order_id
        try:
            with session.begin_nested():
                now = utcnow()
                order.status = OrderStatus.ON_WAY
                order.route_details = {
                    "started_at": to_iso(now),
                    "started_by": _actor(driver_id, driver_name),
                }
                _record_stage(
                    session, order, Stage.IN_TRANSIT,
                    _actor(driver_id, driver_name),
                    {"driver": (order.assignment_details or {}).get("assigned_driver")},
                )
                order.tracking.timing_metrics = {
                    **(order.tracking.timing_metrics or {}),
                    "dispatched_at": to_iso(now),
                }
                session.flush()
        except Exception as exc:
            logger.exception(f"Failed to start route for order {order_id}")
            errors.append({"order_id": order_id, "error": str(exc)})
            continue
        started.append(order_id)

    logger.info(f"Route started for vehicle {vehicle_id}: {len(started)} orders on the way")
    return {
        "vehicle_id": str(vehicle_id),
        "orders_on_route": started,
        "total_orders": len(started),
        "errors": errors,
    }


def complete_delivery(
    session: Session,
    order_id: str,
    driver_id: str,
    driver_name: str,
    customer_confirmed: bool,
    notes: Optional[str] = None,
    satisfaction: Optional[int] = None,
    signature: Optional[str] = None,
) -> dict[str, Any]:
    """Complete a delivery and release the assigned driver's slot."""
    order = load_order(session, order_id)
    _require_status(order, DELIVERY_STATUSES, "complete delivery")
    if not customer_confirmed:
        raise InvalidStageTransition(
            "Customer must confirm receipt of delivery",
            order_id=order_id,
        )

    satisfaction = satisfaction if satisfaction is not None else 5
    order.status = OrderStatus.ORDER_COMPLETE
    order.delivery_details = {
        "delivered_at": to_iso(utcnow()),
        "delivered_by": _actor(driver_id, driver_name),
        "customer_confirmed": True,
        "notes": notes,
        "customer_satisfaction": satisfaction,
        "customer_signature": signature,
    }
    _record_stage(
        session, order, Stage.DELIVERED,
        _actor(driver_id, driver_name),
        {
            "customer_signature": signature,
            "delivery_notes": notes,
            "customer_satisfaction": satisfaction,
        },
    )
    order.tracking.is_active = False
    release_driver(session, order.assigned_driver_id or driver_id)
    session.flush()

    logger.info(f"Order {order_id} delivered by {driver_id}")
    return {"order_id": order_id, "status": order.status.value}


def fail_delivery(
    session: Session,
    order_id: str,
    driver_id: str,
    driver_name: str,
    reason: str,
) -> dict[str, Any]:
    """Return a parcel that could not be delivered and release the driver's slot."""
    order = load_order(session, order_id)
    _require_status(order, DELIVERY_STATUSES, "fail delivery")

    order.status = OrderStatus.PARCEL_RETURNED
    order.delivery_details = {
        **(order.delivery_details or {}),
        "failed_at": to_iso(utcnow()),
        "failed_by": _actor(driver_id, driver_name),
        "failure_reason": reason,
    }
    record, _ = ensure_tracking_record(session, order)
    reconcile_record(order, record)
    record.is_active = False
    release_driver(session, order.assigned_driver_id or driver_id)
    session.flush()

    logger.warning(f"Delivery failed for order {order_id}: {reason}")
    return {"order_id": order_id, "status": order.status.value}

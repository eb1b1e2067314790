"""
Workflow reconciler.

Brings a tracking record's stage map back into agreement with the
authoritative order status. The order is never written. A pass is:

- idempotent: a second run over unchanged orders reports no updates
- monotone: a completed stage is never flipped back
- conservative: stage timestamps, actors and payload already written by a
  direct stage operation are kept; only missing payload keys are filled

Stages ahead of what the status implies are never pulled back, so an order
whose tracking was advanced directly keeps that progress. Stages below the
furthest completed stage are filled, so the completed stages always form a
prefix of the sequence after a pass.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from dispatchflow.core.config import settings
from dispatchflow.core.exceptions import TrackingRecordNotFound
from dispatchflow.core.timeutils import parse_iso, to_iso, utcnow
from dispatchflow.models import Order, TrackingPriority, WorkflowTrackingRecord
from dispatchflow.services.queries import load_order
from dispatchflow.services.workflow.stages import (
    STAGE_SEQUENCE,
    Stage,
    WorkflowStatus,
    read_workflow,
    write_workflow,
)
from dispatchflow.services.workflow.status_map import SyncPhase, expected_stages

logger = logging.getLogger(__name__)


# stage -> (order audit block, timestamp key)
STAGE_TIMESTAMP_HINTS: dict[Stage, tuple[str, str]] = {
    Stage.PENDING: ("packing_details", "started_at"),
    Stage.PACKED: ("packing_details", "completed_at"),
    Stage.STORAGE: ("storage_details", "completed_at"),
    Stage.ASSIGNED: ("assignment_details", "assigned_at"),
    Stage.LOADED: ("loading_details", "completed_at"),
    Stage.IN_TRANSIT: ("route_details", "started_at"),
    Stage.DELIVERED: ("delivery_details", "delivered_at"),
}

# stage -> (order audit block, actor key)
STAGE_ACTOR_HINTS: dict[Stage, tuple[str, str]] = {
    Stage.PENDING: ("packing_details", "staff"),
    Stage.PACKED: ("packing_details", "staff"),
    Stage.STORAGE: ("storage_details", "staff"),
    Stage.ASSIGNED: ("assignment_details", "assigned_by"),
    Stage.LOADED: ("loading_details", "staff"),
    Stage.IN_TRANSIT: ("route_details", "started_by"),
    Stage.DELIVERED: ("delivery_details", "delivered_by"),
}

# Used when the order carries no actor for a stage
SYSTEM_ACTORS: dict[Stage, dict[str, str]] = {
    Stage.PENDING: {"employee_id": "SYSTEM", "employee_name": "Order Confirmation"},
    Stage.PACKED: {"employee_id": "PS_001", "employee_name": "Packing Staff"},
    Stage.STORAGE: {"employee_id": "SO_001", "employee_name": "Storage Officer"},
    Stage.ASSIGNED: {"employee_id": "DO1_001", "employee_name": "Dispatch Officer 1"},
    Stage.LOADED: {"employee_id": "DO2_001", "employee_name": "Dispatch Officer 2"},
    Stage.IN_TRANSIT: {"employee_id": "DR_001", "employee_name": "Driver"},
    Stage.DELIVERED: {"employee_id": "DR_001", "employee_name": "Driver"},
}

# timing_metrics key filled when a stage completes
STAGE_TIMING_KEYS: dict[Stage, str] = {
    Stage.PACKED: "packing_completed_at",
    Stage.ASSIGNED: "driver_assigned_at",
    Stage.LOADED: "dispatched_at",
    Stage.DELIVERED: "actual_delivery_time",
}


@dataclass
class ReconciliationResult:
    """Summary of one reconciliation pass."""
    phase: str
    scanned_count: int = 0
    updated_count: int = 0
    created_count: int = 0
    failed_order_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "scanned_count": self.scanned_count,
            "updated_count": self.updated_count,
            "created_count": self.created_count,
            "failed_order_ids": list(self.failed_order_ids),
        }


# =============================================================================
# Order audit readers
# =============================================================================

def normalize_actor(value: Any) -> Optional[dict[str, Any]]:
    """
    Normalize the staff/driver dicts found in order audit blocks
    ({staff_id, staff_name} or {employee_id, employee_name}) to a stage actor.
    """
    if not isinstance(value, dict):
        return None
    employee_id = value.get("employee_id") or value.get("staff_id")
    employee_name = value.get("employee_name") or value.get("staff_name") or value.get("name")
    if not employee_id and not employee_name:
        return None
    return {"employee_id": employee_id, "employee_name": employee_name}


def _audit_value(order: Order, block: str, key: str) -> Any:
    return (getattr(order, block) or {}).get(key)


def stage_timestamp(order: Order, stage: Stage) -> Optional[datetime]:
    block, key = STAGE_TIMESTAMP_HINTS[stage]
    return parse_iso(_audit_value(order, block, key))


def stage_actor(order: Order, stage: Stage) -> dict[str, Any]:
    block, key = STAGE_ACTOR_HINTS[stage]
    actor = normalize_actor(_audit_value(order, block, key))
    if actor is None and stage in (Stage.IN_TRANSIT, Stage.DELIVERED):
        actor = normalize_actor(_audit_value(order, "assignment_details", "assigned_driver"))
    return actor or dict(SYSTEM_ACTORS[stage])


def stage_payload(order: Order, stage: Stage) -> dict[str, Any]:
    """Stage payload recoverable from the order's audit blocks."""
    packing = order.packing_details or {}
    storage = order.storage_details or {}
    assignment = order.assignment_details or {}
    loading = order.loading_details or {}
    delivery = order.delivery_details or {}

    if stage == Stage.PACKED:
        return {"packing_notes": packing.get("notes")}
    if stage == Stage.STORAGE:
        return {
            "storage_location": storage.get("storage_location"),
            "storage_notes": storage.get("notes"),
        }
    if stage == Stage.ASSIGNED:
        return {
            "assigned_vehicle": assignment.get("assigned_vehicle"),
            "assigned_driver": assignment.get("assigned_driver"),
            "assigned_by": assignment.get("assigned_by"),
        }
    if stage == Stage.LOADED:
        details = None
        if loading:
            details = {
                "loading_progress": loading.get("progress"),
                "total_items_loaded": loading.get("total_items_loaded"),
                "total_items_requested": loading.get("total_items_requested"),
            }
        return {
            "vehicle_info": assignment.get("assigned_vehicle"),
            "loading_details": details,
        }
    if stage == Stage.IN_TRANSIT:
        return {"driver": assignment.get("assigned_driver")}
    if stage == Stage.DELIVERED:
        return {
            "customer_signature": delivery.get("customer_signature"),
            "delivery_notes": delivery.get("notes"),
            "customer_satisfaction": delivery.get("customer_satisfaction"),
        }
    return {}


# =============================================================================
# Seeding
# =============================================================================

def seed_tracking_record(order: Order, now: Optional[datetime] = None) -> WorkflowTrackingRecord:
    """
    Create the tracking record for an order with an empty stage map.

    Customer name and phone are copied here and never refreshed.
    The record is attached through ``order.tracking`` and joins the order's
    session on the next flush.
    """
    customer = order.customer
    amount = float(order.total_amount or 0)
    address = order.delivery_address or {}

    record = WorkflowTrackingRecord(
        order_id=order.order_id,
        customer_id=order.customer_id,
        current_status=order.status.value,
        priority=TrackingPriority.from_amount(amount),
        workflow_status=WorkflowStatus.empty().to_dict(),
        order_snapshot={
            "total_amount": amount,
            "item_count": len(order.items),
            "delivery_date": to_iso(order.delivery_date),
            "time_slot": order.time_slot,
            "delivery_address": {
                "area": address.get("area", ""),
                "full_address": address.get("full_address", ""),
            },
            "customer_name": customer.name if customer else None,
            "customer_phone": customer.phone if customer else None,
        },
        timing_metrics={
            "order_placed_at": to_iso(order.created_at or now or utcnow()),
            "estimated_delivery_time": to_iso(order.delivery_date),
        },
        is_active=True,
    )
    order.tracking = record
    return record


def ensure_tracking_record(session: Session, order: Order) -> tuple[WorkflowTrackingRecord, bool]:
    """
    Existing tracking record of an order, or a freshly seeded one.

    Returns:
        (record, created)
    """
    if order.tracking is not None:
        return order.tracking, False
    record = seed_tracking_record(order)
    session.add(record)
    return record, True


# =============================================================================
# Reconciliation
# =============================================================================

def reconcile_record(
    order: Order,
    record: WorkflowTrackingRecord,
    now: Optional[datetime] = None,
) -> bool:
    """
    Apply the minimal patch that makes ``record`` agree with ``order.status``.

    Args:
        order: Authoritative order (read only)
        record: Tracking record to patch in place
        now: Timestamp for stages whose completion time the order doesn't carry

    Returns:
        True if the record changed
    """
    now = now or utcnow()
    changed = False

    expected = expected_stages(order.status)
    if expected:
        workflow = read_workflow(record)
        metrics = dict(record.timing_metrics or {})
        workflow_changed = False

        depth = len(expected)
        done = workflow.completed_stages()
        if done:
            depth = max(depth, done[-1].index + 1)

        for stage in STAGE_SEQUENCE[:depth]:
            was_completed = workflow.is_completed(stage)
            if workflow.complete(
                stage,
                at=stage_timestamp(order, stage) or now,
                actor=stage_actor(order, stage),
                details=stage_payload(order, stage),
                overwrite=False,
            ):
                workflow_changed = True

            timing_key = STAGE_TIMING_KEYS.get(stage)
            if timing_key and not metrics.get(timing_key):
                metrics[timing_key] = to_iso(workflow[stage].completed_at)
            if not was_completed:
                logger.debug(f"Order {order.order_id}: stage {stage.value} completed by reconciliation")

        if workflow_changed:
            write_workflow(record, workflow)
            changed = True
        if metrics != (record.timing_metrics or {}):
            record.timing_metrics = metrics
            changed = True

    if record.current_status != order.status.value:
        record.current_status = order.status.value
        changed = True

    return changed


def _orders_for_phase(session: Session, phase: SyncPhase, offset: int, limit: int) -> list[Order]:
    stmt = (
        select(Order)
        .where(Order.status.in_(list(phase.statuses)))
        .order_by(Order.order_id)
        .offset(offset)
        .limit(limit)
    )
    return list(session.scalars(stmt).all())


def run_reconciliation(
    session: Session,
    phase: SyncPhase = SyncPhase.ALL,
    now: Optional[datetime] = None,
) -> ReconciliationResult:
    """
    Reconcile every order whose status falls in ``phase``.

    Each order runs in its own savepoint; a failure is logged, its changes
    are rolled back and the pass continues. The caller commits.
    """
    phase = SyncPhase(phase)
    now = now or utcnow()
    batch_size = settings.reconcile_batch_size
    result = ReconciliationResult(phase=phase.value)

    logger.info(f"Starting workflow reconciliation (phase={phase.value})")

    offset = 0
    while True:
        orders = _orders_for_phase(session, phase, offset, batch_size)
        if not orders:
            break
        offset += len(orders)

        for order in orders:
            order_id = order.order_id
            result.scanned_count += 1
            try:
                with session.begin_nested():
                    record, created = ensure_tracking_record(session, order)
                    changed = reconcile_record(order, record, now=now)
                    record.last_reconciled_at = now
                    session.flush()
            except Exception:
                logger.exception(f"Reconciliation failed for order {order_id}")
                result.failed_order_ids.append(order_id)
                continue

            if created:
                result.created_count += 1
            if changed or created:
                result.updated_count += 1

    logger.info(
        f"Workflow reconciliation finished (phase={phase.value}): "
        f"scanned={result.scanned_count}, updated={result.updated_count}, "
        f"created={result.created_count}, failed={len(result.failed_order_ids)}"
    )
    return result


def reconcile_order(session: Session, order_id: str) -> WorkflowTrackingRecord:
    """Reconcile a single order on demand and return its tracking record."""
    order = load_order(session, order_id)
    record, _ = ensure_tracking_record(session, order)
    reconcile_record(order, record)
    session.flush()
    return record


# =============================================================================
# Read helpers
# =============================================================================

def get_tracking_record(session: Session, order_id: str) -> WorkflowTrackingRecord:
    record = session.scalar(
        select(WorkflowTrackingRecord).where(WorkflowTrackingRecord.order_id == order_id)
    )
    if record is None:
        raise TrackingRecordNotFound(order_id)
    return record


def workflow_progress(record: WorkflowTrackingRecord) -> dict[str, bool]:
    """Stage name -> completed flag."""
    return read_workflow(record).progress()


def workflow_summary(record: WorkflowTrackingRecord) -> dict[str, Any]:
    workflow = read_workflow(record)
    current = workflow.current_stage
    return {
        "order_id": record.order_id,
        "current_status": record.current_status,
        "priority": record.priority.value,
        "progress": workflow.progress(),
        "progress_percent": workflow.progress_percent,
        "current_stage": current.value if current else None,
        "stages": workflow.to_dict(),
        "timing_metrics": record.timing_metrics or {},
        "order_snapshot": record.order_snapshot or {},
        "last_reconciled_at": record.last_reconciled_at,
    }

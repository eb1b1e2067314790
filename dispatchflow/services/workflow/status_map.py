"""
Order status interpreter.

One declarative table maps each authoritative order status to the number
of leading workflow stages that must read completed. Every reconciliation
entry point shares it. Statuses absent from the table (unpaid, refunded,
complaint and issue states, ...) carry no expectation and are left alone.
"""
from enum import Enum
from typing import Optional

from dispatchflow.models.enums import OrderStatus
from dispatchflow.services.workflow.stages import STAGE_SEQUENCE, Stage

# status -> count of leading stages expected completed
STATUS_STAGE_DEPTH: dict[OrderStatus, int] = {
    OrderStatus.ORDER_CONFIRMED: 1,              # pending
    OrderStatus.PICKING_ORDER: 1,                # pending
    OrderStatus.ALLOCATED_DRIVER: 2,             # + packed
    OrderStatus.READY_TO_PICKUP: 3,              # + storage
    OrderStatus.ASSIGNED_DISPATCH_OFFICER_2: 4,  # + assigned
    OrderStatus.ORDER_PICKED_UP: 5,              # + loaded
    OrderStatus.ON_WAY: 6,                       # + in_transit
    OrderStatus.DRIVER_CONFIRMED: 6,
    OrderStatus.ORDER_PROCESSED: 7,              # + delivered
    OrderStatus.ORDER_COMPLETE: 7,
}

TRACKED_STATUSES: frozenset[OrderStatus] = frozenset(STATUS_STAGE_DEPTH)


def _coerce(status) -> Optional[OrderStatus]:
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(status)
    except ValueError:
        return None


def expected_stages(status) -> Optional[tuple[Stage, ...]]:
    """
    Stages that should be completed for an order in ``status``.

    Returns:
        A prefix of STAGE_SEQUENCE, or None when the status carries no
        expectation (the reconciler takes no action for such orders)
    """
    order_status = _coerce(status)
    if order_status is None or order_status not in STATUS_STAGE_DEPTH:
        return None
    return STAGE_SEQUENCE[:STATUS_STAGE_DEPTH[order_status]]


class SyncPhase(str, Enum):
    """Status subsets scanned by the scheduled reconciliation passes."""
    PACKING = "packing"
    LOADING = "loading"
    DELIVERY = "delivery"
    ALL = "all"

    @property
    def statuses(self) -> frozenset[OrderStatus]:
        return _PHASE_STATUSES[self]


_PHASE_STATUSES: dict[SyncPhase, frozenset[OrderStatus]] = {
    SyncPhase.PACKING: frozenset({
        OrderStatus.ORDER_CONFIRMED,
        OrderStatus.PICKING_ORDER,
        OrderStatus.ALLOCATED_DRIVER,
        OrderStatus.READY_TO_PICKUP,
    }),
    SyncPhase.LOADING: frozenset({
        OrderStatus.ASSIGNED_DISPATCH_OFFICER_2,
        OrderStatus.ORDER_PICKED_UP,
    }),
    SyncPhase.DELIVERY: frozenset({
        OrderStatus.ON_WAY,
        OrderStatus.DRIVER_CONFIRMED,
        OrderStatus.ORDER_PROCESSED,
        OrderStatus.ORDER_COMPLETE,
    }),
    SyncPhase.ALL: TRACKED_STATUSES,
}

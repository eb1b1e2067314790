"""
Workflow tracking package.

Seven-stage tracking records derived from the authoritative order status,
and the reconciler that keeps them in agreement.
"""

from dispatchflow.services.workflow.stages import (
    Stage,
    STAGE_SEQUENCE,
    StageRecord,
    WorkflowStatus,
    read_workflow,
    write_workflow,
)
from dispatchflow.services.workflow.status_map import (
    STATUS_STAGE_DEPTH,
    SyncPhase,
    expected_stages,
)
from dispatchflow.services.workflow.reconciler import (
    ReconciliationResult,
    seed_tracking_record,
    ensure_tracking_record,
    reconcile_record,
    reconcile_order,
    run_reconciliation,
    get_tracking_record,
    workflow_progress,
    workflow_summary,
)

__all__ = [
    # Stages
    "Stage",
    "STAGE_SEQUENCE",
    "StageRecord",
    "WorkflowStatus",
    "read_workflow",
    "write_workflow",
    # Status interpreter
    "STATUS_STAGE_DEPTH",
    "SyncPhase",
    "expected_stages",
    # Reconciler
    "ReconciliationResult",
    "seed_tracking_record",
    "ensure_tracking_record",
    "reconcile_record",
    "reconcile_order",
    "run_reconciliation",
    "get_tracking_record",
    "workflow_progress",
    "workflow_summary",
]

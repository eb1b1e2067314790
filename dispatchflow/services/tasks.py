"""
Celery tasks for DispatchFlow.

Runs the workflow reconciliation passes outside the request path. Each
sync phase is scheduled by Celery beat (see core.celery_app) and can also
be queued manually.
"""
import logging

from dispatchflow.core.celery_app import celery_app
from dispatchflow.db.database import sync_session_maker
from dispatchflow.services.workflow.reconciler import run_reconciliation
from dispatchflow.services.workflow.status_map import SyncPhase

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="dispatchflow.services.tasks.reconcile_workflow",
    queue="workflow",
    max_retries=2,
)
def reconcile_workflow(self, phase: str = SyncPhase.ALL.value) -> dict:
    """
    Run one reconciliation pass as a Celery task.

    Per-order failures are reported in ``failed_order_ids`` and do not fail
    the task. Anything that aborts the whole pass (database unavailable,
    commit failure) is rolled back and retried.

    Args:
        phase: packing | loading | delivery | all

    Returns:
        {"phase", "updated_count", "scanned_count", "created_count", "failed_order_ids"}
    """
    sync_phase = SyncPhase(phase)
    logger.info(f"Starting reconciliation task for phase {sync_phase.value}")

    with sync_session_maker() as session:
        try:
            result = run_reconciliation(session, sync_phase)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Reconciliation task failed for phase {sync_phase.value}: {e}")
            raise self.retry(exc=e)

    summary = result.to_dict()
    if result.failed_order_ids:
        logger.warning(
            f"Reconciliation phase {sync_phase.value} skipped "
            f"{len(result.failed_order_ids)} orders: {result.failed_order_ids}"
        )
    logger.info(f"Reconciliation task completed: {summary}")
    return summary

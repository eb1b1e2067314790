"""
Workflow tracking API endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from dispatchflow.db.database import get_async_session
from dispatchflow.schemas.workflow import SyncResponse, WorkflowResponse
from dispatchflow.services.workflow.reconciler import (
    get_tracking_record,
    reconcile_order,
    run_reconciliation,
    workflow_summary,
)
from dispatchflow.services.workflow.status_map import SyncPhase

router = APIRouter()


def _summary(session: Session, order_id: str) -> dict:
    return workflow_summary(get_tracking_record(session, order_id))


def _reconcile(session: Session, order_id: str) -> dict:
    return workflow_summary(reconcile_order(session, order_id))


def _sync(session: Session, phase: SyncPhase) -> dict:
    return run_reconciliation(session, phase).to_dict()


@router.post("/sync/{phase}", response_model=SyncResponse)
async def sync_workflow(
    phase: SyncPhase,
    session: AsyncSession = Depends(get_async_session),
):
    """
    Run a reconciliation pass on demand.

    - **phase**: packing, loading, delivery or all
    """
    return await session.run_sync(_sync, phase)


@router.get("/{order_id}", response_model=WorkflowResponse)
async def get_workflow(
    order_id: str,
    session: AsyncSession = Depends(get_async_session),
):
    """Get the seven-stage tracking record of an order."""
    return await session.run_sync(_summary, order_id)


@router.post("/{order_id}/reconcile", response_model=WorkflowResponse)
async def reconcile_workflow(
    order_id: str,
    session: AsyncSession = Depends(get_async_session),
):
    """Reconcile one order's tracking record (seeding it if missing)."""
    return await session.run_sync(_reconcile, order_id)

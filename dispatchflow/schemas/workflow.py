"""
Workflow tracking Pydantic schemas.
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from dispatchflow.schemas.base import BaseSchema


class StageRecordSchema(BaseSchema):
    completed: bool
    completed_at: Optional[str]
    actor: Optional[dict[str, Any]]
    details: dict[str, Any] = Field(default_factory=dict)


class WorkflowResponse(BaseSchema):
    """Tracking record of an order."""
    order_id: str
    current_status: str
    priority: str
    progress: dict[str, bool]
    progress_percent: int
    current_stage: Optional[str]
    stages: dict[str, StageRecordSchema]
    timing_metrics: dict[str, Any] = Field(default_factory=dict)
    order_snapshot: dict[str, Any] = Field(default_factory=dict)
    last_reconciled_at: Optional[datetime] = None


class SyncResponse(BaseSchema):
    """Result of an on-demand reconciliation pass."""
    phase: str
    updated_count: int
    scanned_count: int
    created_count: int
    failed_order_ids: list[str] = Field(default_factory=list)

"""
Workflow stage model.

Seven named stages, each independently completed and timestamped with an
actor and a stage-specific payload. The record is stored as JSON on
``WorkflowTrackingRecord.workflow_status``; this module is the only place
that knows its shape.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from dispatchflow.core.timeutils import parse_iso, to_iso, utcnow


class Stage(str, Enum):
    """Workflow milestones, in execution order."""
    PENDING = "pending"
    PACKED = "packed"
    STORAGE = "storage"
    ASSIGNED = "assigned"
    LOADED = "loaded"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"

    @property
    def index(self) -> int:
        return STAGE_SEQUENCE.index(self)


STAGE_SEQUENCE: tuple[Stage, ...] = tuple(Stage)

# Keys written by older clients
_LEGACY_KEYS = {"inTransit": Stage.IN_TRANSIT}


@dataclass
class StageRecord:
    """Completion state of a single stage."""
    completed: bool = False
    completed_at: Optional[datetime] = None
    actor: Optional[dict[str, Any]] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "completed": self.completed,
            "completed_at": to_iso(self.completed_at),
            "actor": dict(self.actor) if self.actor else None,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "StageRecord":
        data = data or {}
        return cls(
            completed=bool(data.get("completed", False)),
            completed_at=parse_iso(data.get("completed_at")),
            actor=dict(data["actor"]) if data.get("actor") else None,
            details=dict(data.get("details") or {}),
        )


@dataclass
class WorkflowStatus:
    """
    The seven-stage map.

    Direct stage operations call ``complete`` (overwrite=True). The
    reconciler calls it with overwrite=False so that timestamps, actors and
    payload already written by a direct operation survive.
    """
    stages: dict[Stage, StageRecord] = field(
        default_factory=lambda: {stage: StageRecord() for stage in STAGE_SEQUENCE}
    )

    @classmethod
    def empty(cls) -> "WorkflowStatus":
        return cls()

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "WorkflowStatus":
        data = dict(data or {})
        for legacy, stage in _LEGACY_KEYS.items():
            if legacy in data and stage.value not in data:
                data[stage.value] = data.pop(legacy)
        return cls(
            stages={stage: StageRecord.from_dict(data.get(stage.value)) for stage in STAGE_SEQUENCE}
        )

    def to_dict(self) -> dict[str, Any]:
        return {stage.value: self.stages[stage].to_dict() for stage in STAGE_SEQUENCE}

    def __getitem__(self, stage: Stage) -> StageRecord:
        return self.stages[Stage(stage)]

    def is_completed(self, stage: Stage) -> bool:
        return self[stage].completed

    def complete(
        self,
        stage: Stage,
        at: Optional[datetime] = None,
        actor: Optional[dict[str, Any]] = None,
        details: Optional[dict[str, Any]] = None,
        overwrite: bool = True,
    ) -> bool:
        """
        Mark a stage completed.

        With overwrite=False an already-completed stage keeps its timestamp
        and actor, and only missing payload keys are filled.

        Returns:
            True if anything about the stage changed
        """
        record = self[stage]
        changed = False

        if not record.completed:
            record.completed = True
            record.completed_at = at or utcnow()
            record.actor = dict(actor) if actor else record.actor
            changed = True
        elif overwrite:
            record.completed_at = at or utcnow()
            if actor:
                record.actor = dict(actor)
            changed = True

        if details:
            changed = self._merge_details(record, details, overwrite) or changed
        return changed

    @staticmethod
    def _merge_details(record: StageRecord, details: dict[str, Any], overwrite: bool) -> bool:
        changed = False
        for key, value in details.items():
            if value is None:
                continue
            if overwrite or key not in record.details or record.details[key] in (None, "", {}):
                if record.details.get(key) != value:
                    record.details[key] = value
                    changed = True
        return changed

    def update_details(self, stage: Stage, details: dict[str, Any]) -> bool:
        """Merge payload into a stage without touching its completion."""
        return self._merge_details(self[stage], details, overwrite=True)

    # =========================================================================
    # Progress
    # =========================================================================

    def progress(self) -> dict[str, bool]:
        """Stage name -> completed flag."""
        return {stage.value: self.stages[stage].completed for stage in STAGE_SEQUENCE}

    def completed_stages(self) -> list[Stage]:
        return [stage for stage in STAGE_SEQUENCE if self.stages[stage].completed]

    def is_prefix(self) -> bool:
        """True if the completed stages form a prefix of the stage sequence (no gaps)."""
        flags = [self.stages[stage].completed for stage in STAGE_SEQUENCE]
        seen_open = False
        for flag in flags:
            if not flag:
                seen_open = True
            elif seen_open:
                return False
        return True

    @property
    def current_stage(self) -> Optional[Stage]:
        """Furthest completed stage, or None if nothing is completed."""
        done = self.completed_stages()
        return done[-1] if done else None

    @property
    def progress_percent(self) -> int:
        return round(len(self.completed_stages()) / len(STAGE_SEQUENCE) * 100)


def read_workflow(record) -> WorkflowStatus:
    """Decode the stage map of a tracking record."""
    return WorkflowStatus.from_dict(record.workflow_status)


def write_workflow(record, workflow: WorkflowStatus) -> None:
    """Store the stage map (always a new dict so the ORM sees the change)."""
    record.workflow_status = workflow.to_dict()

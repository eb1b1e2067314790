"""
Employee model for DispatchFlow.
"""
from typing import Any, Optional

from sqlalchemy import String, Boolean, Integer, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from dispatchflow.models.base import BaseModel, JSONType
from dispatchflow.models.enums import EmployeeRole


class Employee(BaseModel):
    """
    Operational staff (packing, storage, dispatch officers, drivers).

    Attributes:
        employee_id: Unique employee identifier
        name: Employee's full name
        roles: List of EmployeeRole values
        current_assignments: Orders currently bound to this employee
        max_assignments: Concurrency limit for current_assignments

    ``current_assignments`` is only changed through single conditional UPDATE
    statements (see services.dispatch.assignment), never read-modify-write in
    Python.
    """
    __tablename__ = "employees"
    __table_args__ = (
        CheckConstraint(
            "current_assignments >= 0",
            name="current_assignments_non_negative",
        ),
    )

    employee_id: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )

    roles: Mapped[list[str]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )

    # Status
    is_activated: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    is_blocked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Assignment counters
    current_assignments: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    max_assignments: Mapped[int] = mapped_column(
        Integer,
        default=5,
        nullable=False,
    )

    @property
    def is_driver(self) -> bool:
        return EmployeeRole.DRIVER.value in (self.roles or [])

    def as_actor(self) -> dict[str, Any]:
        return {"employee_id": self.employee_id, "employee_name": self.name}

    def __repr__(self) -> str:
        return (
            f"<Employee(id={self.id}, employee_id={self.employee_id!r}, "
            f"assignments={self.current_assignments}/{self.max_assignments})>"
        )

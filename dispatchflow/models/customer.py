"""
Customer model for DispatchFlow.
"""
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dispatchflow.models.base import BaseModel

if TYPE_CHECKING:
    from dispatchflow.models.order import Order


class Customer(BaseModel):
    """
    Customer master data.

    Only ``name`` and ``phone`` are copied into a workflow tracking record,
    once, when the record is seeded.
    """
    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(
        String(200),
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

    # Relationships
    orders: Mapped[list["Order"]] = relationship(
        "Order",
        back_populates="customer",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, name={self.name!r})>"

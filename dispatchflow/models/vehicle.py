"""
Vehicle catalog model for DispatchFlow.

Vehicle types are externally managed and read-only from the dispatch
engine's point of view.
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, Boolean, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from dispatchflow.models.base import BaseModel


class VehicleType(BaseModel):
    """
    Vehicle catalog entry with capacity limits.

    Capacity Properties:
    --------------------
    - max_weight: Maximum load in kg
    - max_volume: Maximum load volume in m³. When absent, the volume is
      derived from the internal dimensions scaled by capacity_limit_percent.
    - max_packages: Maximum number of packages (order lines)
    - priority: Catalog ordering hint (lower first)
    """
    __tablename__ = "vehicle_types"

    # =========================================================================
    # Basic Identification
    # =========================================================================
    vehicle_type: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )

    category: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    display_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )

    # =========================================================================
    # Capacity Constraints
    # =========================================================================
    max_weight: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Maximum weight capacity in kg",
    )

    max_volume: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Maximum volume capacity in m³",
    )

    # Internal Dimensions (fallback for volume)
    max_height: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 2),
        nullable=True,
        comment="Internal height in meters",
    )

    max_length: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 2),
        nullable=True,
        comment="Internal length in meters",
    )

    max_width: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 2),
        nullable=True,
        comment="Internal width in meters",
    )

    capacity_limit_percent: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=80,
        comment="Usable share of the dimensional volume",
    )

    max_packages: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Maximum number of packages",
    )

    # =========================================================================
    # Catalog
    # =========================================================================
    priority: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=100,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    @property
    def effective_max_volume(self) -> float:
        """Usable volume in m³ (explicit value, else derived from dimensions)."""
        if self.max_volume is not None:
            return float(self.max_volume)
        if all([self.max_height, self.max_length, self.max_width]):
            raw = float(self.max_height * self.max_length * self.max_width)
            return round(raw * self.capacity_limit_percent / 100, 2)
        return 0.0

    @property
    def label(self) -> str:
        return self.display_name or self.vehicle_type

    def __repr__(self) -> str:
        return (
            f"<VehicleType(id={self.id}, type={self.vehicle_type!r}, "
            f"active={self.is_active})>"
        )

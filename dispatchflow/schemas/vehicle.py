"""
Vehicle catalog and driver Pydantic schemas.
"""
from decimal import Decimal
from typing import Optional

from pydantic import Field

from dispatchflow.schemas.base import BaseSchema, IDSchema


class VehicleTypeResponse(IDSchema):
    """Catalog vehicle with its capacity limits."""
    vehicle_type: str
    category: Optional[str]
    display_name: Optional[str]
    max_weight: Decimal = Field(..., description="Max weight in kg")
    max_volume: Optional[Decimal] = Field(None, description="Max volume in m³")
    max_height: Optional[Decimal]
    max_length: Optional[Decimal]
    max_width: Optional[Decimal]
    capacity_limit_percent: int
    effective_max_volume: float = Field(..., description="Usable volume in m³")
    max_packages: int
    priority: int
    is_active: bool


class DriverResponse(BaseSchema):
    """Driver with assignment headroom."""
    employee_id: str
    name: str
    phone: Optional[str]
    current_assignments: int
    max_assignments: int

"""
Shared lookups used by the workflow and dispatch services.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from dispatchflow.core.exceptions import DriverNotFound, OrderNotFound, VehicleNotFound
from dispatchflow.models import Employee, Order, VehicleType


def load_order(session: Session, order_id: str) -> Order:
    """Order by business id, items and tracking record eagerly loaded."""
    order = session.scalar(select(Order).where(Order.order_id == order_id))
    if order is None:
        raise OrderNotFound(order_id)
    return order


def load_vehicle(session: Session, vehicle_id) -> VehicleType:
    """
    Active catalog vehicle by primary key or by ``vehicle_type`` name.
    """
    vehicle: Optional[VehicleType] = None
    key = _as_uuid(vehicle_id)
    if key is not None:
        vehicle = session.get(VehicleType, key)
    if vehicle is None:
        vehicle = session.scalar(
            select(VehicleType).where(VehicleType.vehicle_type == str(vehicle_id))
        )
    if vehicle is None or not vehicle.is_active:
        raise VehicleNotFound(vehicle_id)
    return vehicle


def load_employee(session: Session, employee_id: str) -> Employee:
    employee = session.scalar(select(Employee).where(Employee.employee_id == employee_id))
    if employee is None:
        raise DriverNotFound(employee_id)
    return employee


def active_vehicles(session: Session) -> list[VehicleType]:
    """Active catalog in stable catalog order."""
    stmt = (
        select(VehicleType)
        .where(VehicleType.is_active.is_(True))
        .order_by(VehicleType.created_at, VehicleType.vehicle_type)
    )
    return list(session.scalars(stmt).all())


def _as_uuid(value) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None

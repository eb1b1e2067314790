"""
Vehicle fit selector.

Filters the catalog to vehicles that can carry an order and picks the
smallest one, using max_volume + max_weight + max_packages as the
efficiency proxy. The suggestion is advisory; assignment checks the
requested vehicle directly.
"""
from dataclasses import dataclass, asdict
from typing import Any, Iterable, Optional, Union

from dispatchflow.core.config import settings
from dispatchflow.models import VehicleType
from dispatchflow.services.dispatch.requirements import OrderRequirements


@dataclass(frozen=True)
class VehicleCapacity:
    """Capacity view of a catalog vehicle."""
    vehicle_id: str
    vehicle_type: str
    label: str
    max_volume: float  # m³
    max_weight: float  # kg
    max_packages: int
    priority: int = 100

    @classmethod
    def from_model(cls, vehicle: VehicleType) -> "VehicleCapacity":
        return cls(
            vehicle_id=str(vehicle.id),
            vehicle_type=vehicle.vehicle_type,
            label=vehicle.label,
            max_volume=vehicle.effective_max_volume,
            max_weight=float(vehicle.max_weight),
            max_packages=int(vehicle.max_packages),
            priority=vehicle.priority if vehicle.priority is not None else 100,
        )

    @property
    def size_score(self) -> float:
        """Efficiency proxy: smaller means a tighter fit."""
        return self.max_volume + self.max_weight + self.max_packages

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


CatalogEntry = Union[VehicleType, VehicleCapacity]


def _capacity(entry: CatalogEntry) -> VehicleCapacity:
    if isinstance(entry, VehicleCapacity):
        return entry
    return VehicleCapacity.from_model(entry)


def capacity_violations(
    requirements: OrderRequirements,
    capacity: VehicleCapacity,
) -> list[dict[str, Any]]:
    """
    Every constraint the requirements exceed.

    Returns:
        [{"constraint", "required", "capacity", "excess"}, ...], empty when
        the vehicle fits
    """
    checks = (
        ("volume", requirements.volume, capacity.max_volume),
        ("weight", requirements.weight, capacity.max_weight),
        ("packages", requirements.package_count, capacity.max_packages),
    )
    violations = []
    for constraint, required, limit in checks:
        if required > limit:
            violations.append({
                "constraint": constraint,
                "required": required,
                "capacity": limit,
                "excess": round(required - limit, 2),
            })
    return violations


def is_feasible(requirements: OrderRequirements, capacity: CatalogEntry) -> bool:
    return not capacity_violations(requirements, _capacity(capacity))


def select_vehicle(
    requirements: OrderRequirements,
    catalog: Iterable[CatalogEntry],
    use_priority_tiebreak: Optional[bool] = None,
) -> Optional[VehicleCapacity]:
    """
    Smallest feasible vehicle, or None when nothing fits.

    Ties on the size score keep catalog order. With the priority tie-break
    enabled (settings.vehicle_priority_tiebreak), lower ``priority`` wins a
    tie before catalog order does.
    """
    if use_priority_tiebreak is None:
        use_priority_tiebreak = settings.vehicle_priority_tiebreak

    feasible = [c for c in map(_capacity, catalog) if is_feasible(requirements, c)]
    if not feasible:
        return None

    if use_priority_tiebreak:
        feasible.sort(key=lambda c: (c.size_score, c.priority))
    else:
        feasible.sort(key=lambda c: c.size_score)
    return feasible[0]


def _utilization(required: float, limit: float) -> Optional[float]:
    if not limit:
        return None
    return round(required / limit * 100, 1)


def evaluate_catalog(
    requirements: OrderRequirements,
    catalog: Iterable[CatalogEntry],
) -> list[dict[str, Any]]:
    """Annotate every catalog vehicle with suitability, shortfalls and utilization."""
    evaluations = []
    for capacity in map(_capacity, catalog):
        violations = capacity_violations(requirements, capacity)
        evaluations.append({
            "vehicle": capacity.to_dict(),
            "suitable": not violations,
            "violations": violations,
            "utilization": {
                "volume": _utilization(requirements.volume, capacity.max_volume),
                "weight": _utilization(requirements.weight, capacity.max_weight),
                "packages": _utilization(requirements.package_count, capacity.max_packages),
            },
        })
    return evaluations

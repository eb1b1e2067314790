"""
Item requirement estimator.

Derives volume, weight and package count from an order's items. There is
no per-product volume data, so volume is a coarse per-unit approximation,
not a measurement.
"""
import re
from dataclasses import dataclass, asdict
from typing import Any, Iterable, Optional

from dispatchflow.core.config import settings

_NUMERIC_TOKEN = re.compile(r"\d+(?:\.\d+)?")


@dataclass(frozen=True)
class OrderRequirements:
    """Load an order places on a vehicle."""
    volume: float  # m³
    weight: float  # kg
    package_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_weight(value: Any) -> Optional[float]:
    """
    Magnitude of a free-text weight ("2kg" -> 2.0, "0.5 kg" -> 0.5).

    The unit is ignored. Returns None when no numeric token is present.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMERIC_TOKEN.search(str(value))
    if match is None:
        return None
    return float(match.group(0))


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _quantity(item: Any) -> int:
    quantity = _field(item, "quantity")
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        return 1
    return quantity if quantity > 0 else 1


def estimate_requirements(
    items: Iterable[Any],
    unit_volume: Optional[float] = None,
    fallback_unit_weight: Optional[float] = None,
) -> OrderRequirements:
    """
    Estimate the vehicle requirements of an order.

    - package_count: number of order lines
    - volume: sum of quantity x unit volume
    - weight: sum of parsed weight magnitude x quantity; lines whose weight
      cannot be parsed count fallback weight x quantity

    Never raises for malformed weights. All values rounded to 2 dp.

    Args:
        items: OrderItem rows or dicts with ``quantity`` and ``weight``
        unit_volume: Override for settings.unit_volume_m3
        fallback_unit_weight: Override for settings.fallback_unit_weight_kg
    """
    unit_volume = settings.unit_volume_m3 if unit_volume is None else unit_volume
    fallback = (
        settings.fallback_unit_weight_kg
        if fallback_unit_weight is None
        else fallback_unit_weight
    )

    items = list(items)
    volume = 0.0
    weight = 0.0
    for item in items:
        quantity = _quantity(item)
        volume += quantity * unit_volume

        magnitude = parse_weight(_field(item, "weight"))
        if magnitude is None:
            weight += quantity * fallback
        else:
            weight += magnitude * quantity

    return OrderRequirements(
        volume=round(volume, 2),
        weight=round(weight, 2),
        package_count=len(items),
    )

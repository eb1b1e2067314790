"""Tests for dispatchflow.models.enums -- lifecycle and priority enums."""
import pytest

from dispatchflow.models.enums import (
    ComplaintStage,
    EmployeeRole,
    OrderStatus,
    PackingStatus,
    TrackingPriority,
)


class TestOrderStatus:

    def test_values_are_lifecycle_strings(self):
        assert OrderStatus("assigned-dispatch-officer-2") is OrderStatus.ASSIGNED_DISPATCH_OFFICER_2
        assert OrderStatus.ON_WAY.value == "on-way"

    @pytest.mark.parametrize("status", [
        OrderStatus.ORDER_COMPLETE,
        OrderStatus.ORDER_REFUNDED,
        OrderStatus.REFUND,
        OrderStatus.PARCEL_RETURNED,
    ])
    def test_terminal_statuses(self, status):
        assert status.is_terminal

    def test_in_flight_status_not_terminal(self):
        assert not OrderStatus.ON_WAY.is_terminal

    def test_str_enum_compares_to_value(self):
        assert OrderStatus.PICKING_ORDER == "picking-order"


class TestTrackingPriority:

    @pytest.mark.parametrize("amount, expected", [
        (0, TrackingPriority.LOW),
        (99.99, TrackingPriority.LOW),
        (100, TrackingPriority.MEDIUM),
        (199.99, TrackingPriority.MEDIUM),
        (200, TrackingPriority.HIGH),
        (1500, TrackingPriority.HIGH),
    ])
    def test_from_amount(self, amount, expected):
        assert TrackingPriority.from_amount(amount) == expected


class TestSmallEnums:

    def test_packing_status_values(self):
        assert {s.value for s in PackingStatus} == {"pending", "packed", "unavailable"}

    def test_complaint_stages(self):
        assert {s.value for s in ComplaintStage} == {"packing", "storage", "loading"}

    def test_driver_role(self):
        assert EmployeeRole.DRIVER.value == "driver"

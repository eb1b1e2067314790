"""Tests for the role operations (in-memory SQLite)."""
import pytest

from dispatchflow.core.exceptions import InvalidStageTransition, OrderNotFound
from dispatchflow.models import Employee, Order, OrderStatus, PackingStatus
from dispatchflow.services import operations
from dispatchflow.services.dispatch.assignment import assign_vehicle
from dispatchflow.services.workflow.stages import STAGE_SEQUENCE, Stage, read_workflow

PACKER = ("PS-1", "Packer One")
STORE = ("SO-1", "Store Officer")
LOADER = ("DO2-1", "Dispatch Officer")
DRIVER = ("DRV-001", "Test Driver")

LOADED_ASSIGNMENT = {
    "assigned_vehicle": {"vehicle_id": "veh-1", "vehicle_type": "van"},
    "assigned_driver": {"employee_id": "DRV-001", "employee_name": "Test Driver"},
    "assigned_by": {"staff_id": "DO2-1", "staff_name": "Dispatch Officer"},
}


def _reload(db_session, order_id):
    db_session.expire_all()
    return db_session.query(Order).filter_by(order_id=order_id).one()


def _counter(db_session, employee_id="DRV-001"):
    db_session.expire_all()
    return db_session.query(Employee).filter_by(employee_id=employee_id).one().current_assignments


class TestFullLifecycle:

    def test_order_moves_through_every_stage(self, db_session, make_order, make_vehicle, make_driver):
        order = make_order()
        make_vehicle("van")
        make_driver()

        operations.start_packing(db_session, "ORD-001", *PACKER)
        operations.pack_item(db_session, "ORD-001", 0, *PACKER)
        operations.pack_item(db_session, "ORD-001", 1, *PACKER)
        operations.report_item_complaint(
            db_session, "ORD-001", 2, *PACKER, stage="packing", complaint_type="not_available"
        )
        result = operations.complete_packing(db_session, "ORD-001", *PACKER, notes="two bags")
        assert result == {"order_id": "ORD-001", "status": "allocated-driver"}

        for index in range(3):
            operations.verify_storage_item(db_session, "ORD-001", index, *STORE, condition="good")
        operations.complete_storage(db_session, "ORD-001", *STORE, storage_location="A-3")

        assign_vehicle(db_session, "ORD-001", "van", "DRV-001", "DO2-1", "Dispatch Officer")

        for index in range(3):
            operations.verify_loading_item(db_session, "ORD-001", index, *LOADER)
        operations.complete_loading(db_session, "ORD-001", *LOADER)

        route = operations.start_route(db_session, "van", *DRIVER)
        assert route["orders_on_route"] == ["ORD-001"]
        assert _counter(db_session) == 1

        operations.complete_delivery(
            db_session, "ORD-001", *DRIVER, customer_confirmed=True, satisfaction=4, signature="sig"
        )

        order = _reload(db_session, "ORD-001")
        assert order.status == OrderStatus.ORDER_COMPLETE
        workflow = read_workflow(order.tracking)
        assert workflow.completed_stages() == list(STAGE_SEQUENCE)
        assert workflow[Stage.PENDING].actor == {"employee_id": "PS-1", "employee_name": "Packer One"}
        assert workflow[Stage.PACKED].details["packing_notes"] == "two bags"
        assert workflow[Stage.STORAGE].details["storage_location"] == "A-3"
        assert workflow[Stage.DELIVERED].details["customer_satisfaction"] == 4
        assert order.tracking.is_active is False
        assert order.tracking.current_status == "order-complete"
        assert _counter(db_session) == 0


class TestPacking:

    def test_start_packing_records_pending(self, db_session, make_order):
        make_order()
        result = operations.start_packing(db_session, "ORD-001", *PACKER)

        assert result["status"] == "picking-order"
        order = _reload(db_session, "ORD-001")
        assert order.packing_details["staff"] == {"staff_id": "PS-1", "staff_name": "Packer One"}
        assert read_workflow(order.tracking).completed_stages() == [Stage.PENDING]

    def test_start_packing_wrong_status(self, db_session, make_order):
        make_order(status=OrderStatus.ALLOCATED_DRIVER)
        with pytest.raises(InvalidStageTransition) as exc_info:
            operations.start_packing(db_session, "ORD-001", *PACKER)
        assert exc_info.value.context["status"] == "allocated-driver"

    def test_pack_item_progress(self, db_session, make_order):
        make_order(status=OrderStatus.PICKING_ORDER)
        result = operations.pack_item(db_session, "ORD-001", 1, *PACKER)

        assert result["packed_items"] == 1
        assert result["packing_progress"] == 33
        order = _reload(db_session, "ORD-001")
        assert order.items[1].packed is True
        assert order.items[1].packing_status == PackingStatus.PACKED

    def test_pack_item_bad_index(self, db_session, make_order):
        make_order(status=OrderStatus.PICKING_ORDER)
        with pytest.raises(InvalidStageTransition) as exc_info:
            operations.pack_item(db_session, "ORD-001", 9, *PACKER)
        assert exc_info.value.context["item_index"] == 9

    def test_complete_packing_needs_every_item(self, db_session, make_order):
        make_order(status=OrderStatus.PICKING_ORDER)
        operations.pack_item(db_session, "ORD-001", 0, *PACKER)

        with pytest.raises(InvalidStageTransition) as exc_info:
            operations.complete_packing(db_session, "ORD-001", *PACKER)
        assert exc_info.value.context["pending_items"] == [1, 2]
        assert _reload(db_session, "ORD-001").status == OrderStatus.PICKING_ORDER

    def test_non_blocking_complaint_keeps_item_pending(self, db_session, make_order):
        make_order(status=OrderStatus.PICKING_ORDER)
        complaint = operations.report_item_complaint(
            db_session, "ORD-001", 0, *PACKER, stage="packing", complaint_type="wrong_label"
        )

        assert complaint["complaint_id"].startswith("ITEM_COMP_")
        order = _reload(db_session, "ORD-001")
        assert order.items[0].packing_status == PackingStatus.PENDING
        assert order.items[0].complaints[0]["complaint_type"] == "wrong_label"
        assert order.packing_details["has_complaints"] is True

    def test_complaint_stage_must_match_status(self, db_session, make_order):
        make_order(status=OrderStatus.PICKING_ORDER)
        with pytest.raises(InvalidStageTransition):
            operations.report_item_complaint(
                db_session, "ORD-001", 0, *STORE, stage="storage", complaint_type="damaged"
            )


class TestStorage:

    def test_storage_complaint_substitutes_for_verification(self, db_session, make_order):
        make_order(status=OrderStatus.ALLOCATED_DRIVER)
        operations.verify_storage_item(db_session, "ORD-001", 0, *STORE)
        operations.verify_storage_item(db_session, "ORD-001", 1, *STORE)
        operations.report_item_complaint(
            db_session, "ORD-001", 2, *STORE, stage="storage", complaint_type="damaged"
        )

        result = operations.complete_storage(db_session, "ORD-001", *STORE, storage_location="B-1")
        assert result["status"] == "ready-to-pickup"
        order = _reload(db_session, "ORD-001")
        assert read_workflow(order.tracking).completed_stages() == list(STAGE_SEQUENCE[:3])
        assert order.storage_details["storage_location"] == "B-1"

    def test_unverified_items_block_completion(self, db_session, make_order):
        make_order(status=OrderStatus.ALLOCATED_DRIVER)
        operations.verify_storage_item(db_session, "ORD-001", 0, *STORE)
        operations.verify_storage_item(db_session, "ORD-001", 1, *STORE, verified=False)

        with pytest.raises(InvalidStageTransition) as exc_info:
            operations.complete_storage(db_session, "ORD-001", *STORE)
        assert exc_info.value.context["pending_items"] == [1, 2]


class TestLoading:

    def test_item_verification_updates_stage_payload_only(self, db_session, make_order):
        make_order(status=OrderStatus.ASSIGNED_DISPATCH_OFFICER_2, assignment_details=LOADED_ASSIGNMENT)
        result = operations.verify_loading_item(db_session, "ORD-001", 0, *LOADER)

        assert result["loading_progress"] == 33
        workflow = read_workflow(_reload(db_session, "ORD-001").tracking)
        assert not workflow.is_completed(Stage.LOADED)
        assert workflow[Stage.LOADED].details["loading_details"]["total_items_loaded"] == 1

    def test_complete_loading_requires_all_items(self, db_session, make_order):
        make_order(status=OrderStatus.ASSIGNED_DISPATCH_OFFICER_2, assignment_details=LOADED_ASSIGNMENT)
        operations.verify_loading_item(db_session, "ORD-001", 0, *LOADER)

        with pytest.raises(InvalidStageTransition):
            operations.complete_loading(db_session, "ORD-001", *LOADER)

    def test_complete_loading_records_vehicle(self, db_session, make_order):
        make_order(status=OrderStatus.ASSIGNED_DISPATCH_OFFICER_2, assignment_details=LOADED_ASSIGNMENT)
        for index in range(3):
            operations.verify_loading_item(db_session, "ORD-001", index, *LOADER)

        operations.complete_loading(db_session, "ORD-001", *LOADER, notes="rear shelf")
        order = _reload(db_session, "ORD-001")
        loaded = read_workflow(order.tracking)[Stage.LOADED]
        assert loaded.completed
        assert loaded.details["vehicle_info"]["vehicle_type"] == "van"
        assert order.loading_details["ready_for_dispatch"] is True


class TestRouteAndDelivery:

    def test_start_route_without_orders(self, db_session):
        with pytest.raises(InvalidStageTransition):
            operations.start_route(db_session, "van", *DRIVER)

    def test_start_route_only_takes_matching_vehicle(self, db_session, make_order):
        make_order("ORD-001", status=OrderStatus.ORDER_PICKED_UP, assignment_details=LOADED_ASSIGNMENT)
        other = {**LOADED_ASSIGNMENT, "assigned_vehicle": {"vehicle_id": "veh-2", "vehicle_type": "truck"}}
        make_order("ORD-002", status=OrderStatus.ORDER_PICKED_UP, assignment_details=other)

        result = operations.start_route(db_session, "veh-1", *DRIVER)

        assert result["orders_on_route"] == ["ORD-001"]
        assert _reload(db_session, "ORD-002").status == OrderStatus.ORDER_PICKED_UP
        order = _reload(db_session, "ORD-001")
        assert order.status == OrderStatus.ON_WAY
        assert read_workflow(order.tracking).completed_stages() == list(STAGE_SEQUENCE[:6])
        assert "dispatched_at" in order.tracking.timing_metrics

    def test_start_route_isolates_failures(self, db_session, make_order, monkeypatch):
        make_order("ORD-001", status=OrderStatus.ORDER_PICKED_UP, assignment_details=LOADED_ASSIGNMENT)
        make_order("ORD-002", status=OrderStatus.ORDER_PICKED_UP, assignment_details=LOADED_ASSIGNMENT)

        original = operations._record_stage

        def flaky(session, order, *args, **kwargs):
            if order.order_id == "ORD-002":
                raise RuntimeError("tracking write failed")
            return original(session, order, *args, **kwargs)

        monkeypatch.setattr(operations, "_record_stage", flaky)
        result = operations.start_route(db_session, "van", *DRIVER)

        assert result["orders_on_route"] == ["ORD-001"]
        assert result["errors"][0]["order_id"] == "ORD-002"
        assert _reload(db_session, "ORD-002").status == OrderStatus.ORDER_PICKED_UP

    def test_delivery_requires_customer_confirmation(self, db_session, make_order, make_driver):
        make_order(status=OrderStatus.ON_WAY, assignment_details=LOADED_ASSIGNMENT)
        make_driver(current_assignments=1)

        with pytest.raises(InvalidStageTransition):
            operations.complete_delivery(db_session, "ORD-001", *DRIVER, customer_confirmed=False)
        assert _reload(db_session, "ORD-001").status == OrderStatus.ON_WAY
        assert _counter(db_session) == 1

    def test_failed_delivery_returns_parcel(self, db_session, make_order, make_driver):
        make_order(status=OrderStatus.ON_WAY, assignment_details=LOADED_ASSIGNMENT)
        make_driver(current_assignments=1)

        result = operations.fail_delivery(db_session, "ORD-001", *DRIVER, reason="Nobody home")

        assert result["status"] == "parcel-returned"
        order = _reload(db_session, "ORD-001")
        assert order.delivery_details["failure_reason"] == "Nobody home"
        assert order.tracking.is_active is False
        assert not read_workflow(order.tracking).is_completed(Stage.DELIVERED)
        assert _counter(db_session) == 0

    def test_unknown_order(self, db_session):
        with pytest.raises(OrderNotFound):
            operations.complete_delivery(db_session, "ORD-404", *DRIVER, customer_confirmed=True)

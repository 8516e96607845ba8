"""Tests for the Order aggregate."""

from dataclasses import replace
from decimal import Decimal

import pytest

from order_engine import Actor, ItemStatus, Order, OrderRevision, OrderStatus, OrderType
from order_engine.commands import MarkItemReceived, PlaceOrder, RequestTransition, ReviseOrder
from order_engine.errors import NotFoundError, StateConflictError, UnauthorizedError, ValidationError
from order_engine.events import ItemReceived, OrderStatusChanged


@pytest.fixture
def pos_draft(composer, draft, menu):
    draft.add_line_from_menu_item(menu.get_menu_item("B"))
    draft.add_line_from_menu_item(menu.get_menu_item("A"))
    return composer.compose_from_selection(draft.lines, table_number="5", customer_name="Ana")


class TestPlace:
    def test_from_confirmation(self, pos_draft) -> None:
        order = Order.from_confirmation("order-9", pos_draft)
        assert order.order_id == "order-9"
        assert order.status == OrderStatus.PENDING
        assert order.order_type == OrderType.DINE_IN
        assert order.total == pos_draft.total == Decimal("250")
        assert order.table_number == "5"
        assert order.placed_at is not None
        assert all(line.item_status == ItemStatus.PENDING for line in order.lines)

    def test_place_twice(self, pos_draft) -> None:
        order = Order.from_confirmation("order-9", pos_draft)
        with pytest.raises(StateConflictError, match="already exists"):
            order.place(PlaceOrder("order-10", pos_draft))

    def test_blank_id(self, pos_draft) -> None:
        with pytest.raises(ValidationError):
            Order().place(PlaceOrder(" ", pos_draft))

    def test_draft_totals_must_match_lines(self, pos_draft) -> None:
        tampered = replace(pos_draft, subtotal=Decimal("1"), total=Decimal("1"))
        with pytest.raises(ValidationError, match="totals do not match"):
            Order().place(PlaceOrder("order-9", tampered))

    def test_commands_on_unplaced_order(self) -> None:
        with pytest.raises(NotFoundError):
            Order().request_transition(RequestTransition(OrderStatus.READY, Actor.staff()))


class TestRevise:
    def test_applies_supplied_fields_only(self, delivery_order, composer) -> None:
        revision = composer.revise_existing_order(delivery_order, new_phone="0999", new_notes="gate code 12")
        delivery_order.revise(ReviseOrder(revision))
        assert delivery_order.customer_phone == "0999"
        assert delivery_order.notes == "gate code 12"
        assert delivery_order.delivery_address == "12 Mabini St, Manila"
        assert delivery_order.total == Decimal("400")

    def test_rejected_after_ready(self, delivery_order, composer, advance) -> None:
        revision = composer.revise_existing_order(delivery_order, new_phone="0999")
        advance(delivery_order, "Ready")
        with pytest.raises(StateConflictError):
            delivery_order.revise(ReviseOrder(revision))
        assert delivery_order.customer_phone == "09171234567"

    def test_wrong_order(self, delivery_order, composer, pos_draft) -> None:
        other = Order.from_confirmation("other", pos_draft)
        revision = composer.revise_existing_order(other, new_notes="x")
        with pytest.raises(NotFoundError):
            delivery_order.revise(ReviseOrder(revision))

    def test_totals_must_match_lines(self, delivery_order) -> None:
        revision = OrderRevision(
            delivery_order.order_id, subtotal=Decimal("1"), delivery_fee=Decimal("0"), total=Decimal("1")
        )
        with pytest.raises(ValidationError, match="totals do not match"):
            delivery_order.revise(ReviseOrder(revision))
        assert delivery_order.total == delivery_order.subtotal + delivery_order.delivery_fee == Decimal("400")

    def test_totals_checked_against_new_order_type(self, delivery_order) -> None:
        revision = OrderRevision(
            delivery_order.order_id,
            subtotal=Decimal("350"),
            delivery_fee=Decimal("50"),
            total=Decimal("400"),
            order_type=OrderType.PICKUP,
        )
        with pytest.raises(ValidationError, match="totals do not match"):
            delivery_order.revise(ReviseOrder(revision))

    def test_duplicate_line_ids(self, delivery_order) -> None:
        line = delivery_order.lines[0]
        revision = OrderRevision(
            delivery_order.order_id,
            subtotal=line.line_total * 2,
            delivery_fee=Decimal("50"),
            total=line.line_total * 2 + 50,
            lines=(line, line),
        )
        with pytest.raises(ValidationError, match="distinct line ids"):
            delivery_order.revise(ReviseOrder(revision))
        assert len(delivery_order.lines) == 2


class TestTransitions:
    def test_delivery_path(self, delivery_order, staff) -> None:
        for target in (OrderStatus.READY, OrderStatus.ON_THE_WAY, OrderStatus.COMPLETED):
            delivery_order.request_transition(RequestTransition(target, staff))
        assert delivery_order.status == OrderStatus.COMPLETED
        assert delivery_order.is_terminal
        assert [status for status, _ in delivery_order.state.status_history] == [
            OrderStatus.PENDING,
            OrderStatus.READY,
            OrderStatus.ON_THE_WAY,
            OrderStatus.COMPLETED,
        ]

    def test_event_records_actor(self, delivery_order, staff) -> None:
        event = delivery_order.request_transition(RequestTransition(OrderStatus.READY, staff))
        assert isinstance(event, OrderStatusChanged)
        assert event.previous == OrderStatus.PENDING
        assert event.actor_role == staff.role

    def test_plain_status_value(self, delivery_order, staff) -> None:
        delivery_order.request_transition(RequestTransition("Ready", staff))
        assert delivery_order.status == OrderStatus.READY

    def test_unknown_status(self, delivery_order, staff) -> None:
        with pytest.raises(ValidationError):
            delivery_order.request_transition(RequestTransition("Lost", staff))

    def test_owner_cancels(self, delivery_order, customer) -> None:
        delivery_order.cancel(customer)
        assert delivery_order.status == OrderStatus.CANCELLED

    def test_stranger_cannot_cancel(self, delivery_order) -> None:
        with pytest.raises(UnauthorizedError):
            delivery_order.cancel(Actor.customer("cust-2"))
        assert delivery_order.status == OrderStatus.PENDING

    def test_cancel_after_ready(self, delivery_order, customer, advance) -> None:
        advance(delivery_order, "Ready")
        with pytest.raises(StateConflictError):
            delivery_order.cancel(customer)
        assert delivery_order.status == OrderStatus.READY

    def test_next_statuses(self, delivery_order, advance) -> None:
        advance(delivery_order, "Ready")
        assert delivery_order.next_statuses() == [OrderStatus.ON_THE_WAY]


class TestItemReceipt:
    def test_receive_on_the_way(self, delivery_order, advance) -> None:
        advance(delivery_order, "Ready", "OnTheWay")
        line_id = delivery_order.lines[0].line_id
        event = delivery_order.mark_item_received(MarkItemReceived(line_id))
        assert isinstance(event, ItemReceived)
        assert delivery_order.item_status(line_id) == ItemStatus.RECEIVED
        assert delivery_order.item_status(delivery_order.lines[1].line_id) == ItemStatus.PENDING

    def test_second_receive_is_noop(self, delivery_order, advance) -> None:
        advance(delivery_order, "Ready", "OnTheWay")
        line_id = delivery_order.lines[0].line_id
        delivery_order.mark_item_received(MarkItemReceived(line_id))
        count = len(delivery_order.events())
        assert delivery_order.mark_item_received(MarkItemReceived(line_id)) is None
        assert len(delivery_order.events()) == count
        assert delivery_order.item_status(line_id) == ItemStatus.RECEIVED

    def test_receive_after_completed(self, delivery_order, advance) -> None:
        advance(delivery_order, "Ready", "OnTheWay", "Completed")
        for line in delivery_order.lines:
            delivery_order.mark_item_received(MarkItemReceived(line.line_id))
        assert delivery_order.all_received

    @pytest.mark.parametrize("path", [[], ["Ready"], ["Cancelled"]])
    def test_not_receivable(self, delivery_order, advance, path) -> None:
        advance(delivery_order, *path)
        with pytest.raises(StateConflictError):
            delivery_order.mark_item_received(MarkItemReceived(delivery_order.lines[0].line_id))

    def test_unknown_line(self, delivery_order, advance) -> None:
        advance(delivery_order, "Ready", "OnTheWay")
        with pytest.raises(NotFoundError, match="Order line does not exist"):
            delivery_order.mark_item_received(MarkItemReceived("nope"))

    def test_stranger_cannot_receive(self, delivery_order, advance) -> None:
        advance(delivery_order, "Ready", "OnTheWay")
        with pytest.raises(UnauthorizedError):
            delivery_order.mark_item_received(
                MarkItemReceived(delivery_order.lines[0].line_id, Actor.customer("cust-2"))
            )

    def test_received_never_reverts(self, delivery_order, advance) -> None:
        advance(delivery_order, "Ready", "OnTheWay")
        line_id = delivery_order.lines[0].line_id
        delivery_order.mark_item_received(MarkItemReceived(line_id))
        advance(delivery_order, "Completed")
        rebuilt = Order(history=delivery_order.events())
        assert rebuilt.item_status(line_id) == ItemStatus.RECEIVED
        assert rebuilt.status == OrderStatus.COMPLETED

"""Tests for the Order aggregate: frozen totals and the status state machine."""

import json
from dataclasses import replace
from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from ordering.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from ordering.order.order import Order, OrderSource, OrderStatus
from ordering.pricing.config import PricingConfig
from ordering.pricing.engine import PricingEngine
from ordering.pricing.line_items import CartLineInput


@pytest.fixture()
def priced(catalogue, arduino, cable, tax_10):
    engine = PricingEngine(catalogue=catalogue, config=PricingConfig())
    return engine.price_order(
        [CartLineInput(product_id="prod-arduino", quantity=3), CartLineInput(product_id="prod-cable", quantity=1)]
    )


@pytest.fixture()
def order(priced):
    order = Order.create(priced.calculation.items, priced.snapshot, customer_id="cust-001")
    order._events.clear()
    return order


class TestOrderCreation:
    def test_items_are_copied_from_resolved_lines(self, priced):
        order = Order.create(priced.calculation.items, priced.snapshot, customer_id="cust-001")

        assert len(order.items) == 2
        first = order.items[0]
        assert first.sku == "ARD-UNO"
        assert first.name == "Arduino Uno"
        assert first.unit_price == "19.99"
        assert first.line_total == "59.97"

    def test_totals_are_frozen_strings(self, priced):
        order = Order.create(priced.calculation.items, priced.snapshot)

        assert order.totals.subtotal == "64.97"
        assert order.totals.tax_rate == "0.1000"
        assert order.totals.tax_amount == "6.50"
        assert order.totals.total == "71.47"
        assert order.totals.currency == "USD"

    def test_defaults(self, priced):
        order = Order.create(priced.calculation.items, priced.snapshot)
        assert order.status == OrderStatus.PENDING.value
        assert order.source == OrderSource.CHECKOUT.value
        assert order.customer_id is None

    def test_placed_event(self, priced):
        order = Order.create(priced.calculation.items, priced.snapshot, customer_id="cust-001", cart_id="cart-001")

        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.total == "71.47"
        assert event.cart_id == "cart-001"
        assert json.loads(event.items)[0]["unit_price"] == "19.99"

    def test_totals_round_trip_to_snapshot(self, order, priced):
        assert order.totals.to_snapshot() == priced.snapshot

    def test_unbalanced_totals_rejected(self, priced):
        broken = replace(priced.snapshot, total=priced.snapshot.total + Decimal("1.00"))

        with pytest.raises(ValidationError) as exc:
            Order.create(priced.calculation.items, broken)
        assert "totals" in exc.value.messages

    def test_discount_above_subtotal_rejected(self, priced):
        s = priced.snapshot
        overdrawn = replace(
            s, discount_amount=s.subtotal + Decimal("0.01"), tax_amount=Decimal("0.00"), total=Decimal("-0.01")
        )

        with pytest.raises(ValidationError) as exc:
            Order.create(priced.calculation.items, overdrawn)
        assert "totals" in exc.value.messages

    def test_order_needs_items(self, priced):
        with pytest.raises(ValidationError):
            Order.create([], priced.snapshot)


class TestOrderStatus:
    def test_happy_path(self, order):
        order.confirm()
        order.mark_processing()
        order.mark_shipped()
        order.mark_delivered()
        assert order.status == OrderStatus.DELIVERED.value

    def test_status_change_event(self, order):
        order.confirm()
        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "pending"
        assert event.new_status == "confirmed"

    def test_cannot_skip_states(self, order):
        with pytest.raises(ValidationError) as exc:
            order.mark_shipped()
        assert exc.value.messages == {"status": ["Cannot transition from pending to shipped"]}

    def test_change_status_does_not_cancel(self, order):
        with pytest.raises(ValidationError):
            order.change_status("cancelled")

    def test_unknown_status(self, order):
        with pytest.raises(ValueError):
            order.change_status("teleported")

    def test_status_change_keeps_totals(self, order):
        before = order.totals.to_snapshot()
        order.confirm()
        order.mark_processing()
        assert order.totals.to_snapshot() == before


class TestOrderCancellation:
    def test_cancel_pending(self, order):
        order.cancel(reason="Changed my mind")

        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Changed my mind"
        assert order.cancelled_by == "customer"

        event = order._events[-1]
        assert isinstance(event, OrderCancelled)
        assert json.loads(event.items)[0] == {"product_id": "prod-arduino", "variant_id": None, "quantity": 3}

    def test_cancel_processing_by_admin(self, order):
        order.confirm()
        order.mark_processing()
        order.cancel(reason="Fraud check", cancelled_by="admin")
        assert order.cancelled_by == "admin"

    def test_shipped_order_cannot_be_cancelled(self, order):
        order.confirm()
        order.mark_processing()
        order.mark_shipped()
        with pytest.raises(ValidationError):
            order.cancel()

    def test_cancelled_is_terminal(self, order):
        order.cancel()
        with pytest.raises(ValidationError):
            order.confirm()
        with pytest.raises(ValidationError):
            order.cancel()

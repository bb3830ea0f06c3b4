"""Tests for the pricing engine: cart calculation, order totals and promo policy."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from ordering.pricing.config import PricingConfig
from ordering.pricing.engine import PricingEngine
from ordering.pricing.errors import InsufficientStock, NotAvailable, OutOfStock, PromoInvalid
from ordering.pricing.line_items import CartLineInput
from ordering.pricing.promotions import PromoOutcome, PromoRejection
from ordering.pricing.snapshot import ManualDiscount
from ordering.promotion.promo_code import PromoCode


@pytest.fixture()
def engine(catalogue):
    return PricingEngine(catalogue=catalogue, config=PricingConfig(currency="USD"))


def _lines(*pairs):
    return [CartLineInput(product_id=product_id, quantity=qty) for product_id, qty in pairs]


def _assert_balanced(calc):
    assert calc.total == calc.subtotal - calc.discount_amount + calc.tax_amount + calc.shipping_amount
    assert Decimal("0") <= calc.discount_amount <= calc.subtotal


class TestSeedScenarios:
    def test_single_line_with_tax(self, engine, arduino, tax_10):
        calc = engine.calculate_cart(_lines(("prod-arduino", 3)))

        assert calc.subtotal == Decimal("59.97")
        assert calc.tax_rate == Decimal("0.1")
        assert calc.tax_amount == Decimal("6.00")
        assert calc.discount_amount == Decimal("0.00")
        assert calc.total == Decimal("65.97")
        assert calc.item_count == 3

    def test_percentage_discount_capped(self, engine, catalogue, make_promo, set_tax):
        set_tax(enabled=False)
        catalogue.add_product("prod-scope", "Oscilloscope", "OSC", "200.00", stock_quantity=5)
        make_promo(code="BIG20", discount_value=20.0, maximum_discount_amount=30.0)

        calc = engine.calculate_cart(_lines(("prod-scope", 1)), "BIG20")

        assert calc.discount_amount == Decimal("30.00")
        assert calc.total == Decimal("170.00")

    def test_fixed_discount_clamped_to_subtotal(self, engine, catalogue, make_promo, tax_10):
        catalogue.add_product("prod-kit", "Starter Kit", "KIT", "35.00", stock_quantity=5)
        make_promo(code="FIFTY", discount_type="fixed_amount", discount_value=50.0)

        calc = engine.calculate_cart(_lines(("prod-kit", 1)), "FIFTY")

        assert calc.discount_amount == Decimal("35.00")
        assert calc.tax_amount == Decimal("0.00")
        assert calc.total == Decimal("0.00")

    def test_category_promo_with_no_eligible_items(self, engine, cable, make_promo, tax_10):
        promo = make_promo(code="BOARDS15", discount_value=15.0, applies_to_categories=["cat-boards"])

        calc = engine.calculate_cart(_lines(("prod-cable", 2)), "BOARDS15")

        assert calc.discount_amount == Decimal("0.00")
        assert calc.eligible_item_ids == ()
        assert calc.promo.outcome is PromoOutcome.APPLIED
        assert calc.promo_code == "BOARDS15"
        assert calc.promo_code_id == str(promo.id)
        assert calc.total == Decimal("11.00")

    def test_insufficient_stock(self, engine, catalogue):
        catalogue.add_product("prod-low", "Widget", "WDG", "3.00", stock_quantity=2)

        with pytest.raises(OutOfStock) as exc:
            engine.calculate_cart(_lines(("prod-low", 5)))

        assert isinstance(exc.value, InsufficientStock)
        assert "Widget" in exc.value.message
        assert "Available: 2" in exc.value.message

    def test_tax_disabled(self, engine, arduino, set_tax):
        set_tax(enabled=False, rate=25.0)

        calc = engine.calculate_cart(_lines(("prod-arduino", 2)))

        assert calc.tax_rate == Decimal("0")
        assert calc.tax_amount == Decimal("0.00")
        assert calc.total == Decimal("39.98")


class TestCalculateCart:
    def test_no_tax_setting_means_no_tax(self, engine, arduino):
        calc = engine.calculate_cart(_lines(("prod-arduino", 1)))
        assert calc.tax_rate == Decimal("0")
        assert calc.total == Decimal("19.99")

    def test_empty_cart_is_all_zeros(self, engine, tax_10):
        calc = engine.calculate_cart([])

        assert calc.items == ()
        assert calc.item_count == 0
        assert calc.subtotal == Decimal("0.00")
        assert calc.tax_rate == Decimal("0")
        assert calc.total == Decimal("0.00")
        assert calc.promo.outcome is None

    def test_empty_cart_ignores_promo(self, engine, make_promo):
        make_promo()
        calc = engine.calculate_cart([], "SAVE10")
        assert calc.promo.outcome is PromoOutcome.IGNORED
        assert calc.promo_code is None

    def test_promo_applies_to_whole_cart(self, engine, arduino, cable, make_promo, tax_10):
        make_promo(code="SAVE10", discount_value=10.0)

        calc = engine.calculate_cart(_lines(("prod-arduino", 1), ("prod-cable", 2)), "save10")

        assert calc.subtotal == Decimal("29.99")
        assert calc.discount_amount == Decimal("3.00")
        assert calc.tax_amount == Decimal("2.70")
        assert calc.total == Decimal("29.69")
        assert calc.eligible_item_ids == ("prod-arduino", "prod-cable")
        assert calc.promo_code == "SAVE10"
        _assert_balanced(calc)

    def test_restricted_promo_discounts_only_eligible_lines(self, engine, arduino, cable, make_promo):
        make_promo(code="CABLES", discount_type="fixed_amount", discount_value=20.0, applies_to_products=["prod-cable"])

        calc = engine.calculate_cart(_lines(("prod-arduino", 1), ("prod-cable", 2)), "CABLES")

        # Fixed 20.00 is clamped to the 10.00 of eligible cable lines.
        assert calc.discount_amount == Decimal("10.00")
        assert calc.eligible_item_ids == ("prod-cable",)
        _assert_balanced(calc)

    def test_invalid_promo_is_ignored_leniently(self, engine, arduino):
        calc = engine.calculate_cart(_lines(("prod-arduino", 1)), "NOPE")

        assert calc.promo.outcome is PromoOutcome.IGNORED
        assert calc.promo.reason is PromoRejection.INVALID_CODE
        assert calc.discount_amount == Decimal("0.00")
        assert calc.promo_code is None
        assert calc.promo_code_id is None

    def test_expired_promo_is_ignored_leniently(self, engine, arduino, make_promo):
        make_promo(code="OLD", expires_at=datetime.now(UTC) - timedelta(days=1))
        calc = engine.calculate_cart(_lines(("prod-arduino", 1)), "OLD")
        assert calc.promo.reason is PromoRejection.EXPIRED
        assert calc.discount_amount == Decimal("0.00")

    def test_strict_mode_raises_for_invalid_promo(self, engine, arduino):
        with pytest.raises(PromoInvalid) as exc:
            engine.calculate_cart(_lines(("prod-arduino", 1)), "NOPE", strict=True)
        assert exc.value.reason == "INVALID_CODE"
        assert exc.value.messages == {"promo_code": ["Invalid promo code"]}

    def test_strict_mode_rejects_blank_code(self, engine, arduino):
        with pytest.raises(PromoInvalid) as exc:
            engine.calculate_cart(_lines(("prod-arduino", 1)), "   ", strict=True)
        assert exc.value.reason == "INVALID_CODE"

    def test_strict_mode_raises_when_nothing_is_eligible(self, engine, cable, make_promo):
        make_promo(code="BOARDS15", discount_value=15.0, applies_to_categories=["cat-boards"])

        with pytest.raises(PromoInvalid) as exc:
            engine.calculate_cart(_lines(("prod-cable", 1)), "BOARDS15", strict=True)

        assert exc.value.reason == "NOT_APPLICABLE"
        assert "does not apply to any items" in exc.value.message

    def test_strict_mode_minimum_message(self, engine, cable, make_promo):
        make_promo(code="MIN50", minimum_order_amount=50.0)
        with pytest.raises(PromoInvalid) as exc:
            engine.calculate_cart(_lines(("prod-cable", 1)), "MIN50", strict=True)
        assert exc.value.message == "Minimum order amount of $50.00 required"

    def test_flat_shipping_from_config(self, catalogue, arduino):
        engine = PricingEngine(catalogue=catalogue, config=PricingConfig(shipping_amount=Decimal("4.99")))
        calc = engine.calculate_cart(_lines(("prod-arduino", 1)))
        assert calc.shipping_amount == Decimal("4.99")
        assert calc.total == Decimal("24.98")

    def test_calculation_is_idempotent(self, engine, arduino, cable, make_promo, tax_10):
        make_promo(code="SAVE10")
        lines = _lines(("prod-arduino", 2), ("prod-cable", 3))

        assert engine.calculate_cart(lines, "SAVE10") == engine.calculate_cart(lines, "SAVE10")

    def test_calculation_does_not_count_usage(self, engine, arduino, make_promo):
        promo = make_promo(code="SAVE10")
        engine.calculate_cart(_lines(("prod-arduino", 1)), "SAVE10")
        engine.calculate_cart(_lines(("prod-arduino", 1)), "SAVE10", strict=True)

        assert current_domain.repository_for(PromoCode).get(promo.id).usage_count == 0

    def test_to_dict_uses_decimal_strings(self, engine, arduino, tax_10):
        data = engine.calculate_cart(_lines(("prod-arduino", 3))).to_dict()
        assert data["subtotal"] == "59.97"
        assert data["tax_rate"] == "0.1000"
        assert data["total"] == "65.97"
        assert data["items"][0]["unit_price"] == "19.99"
        assert data["promo"] is None


class TestOrderTotals:
    def test_snapshot_matches_cart_calculation(self, engine, arduino, make_promo, tax_10):
        make_promo(code="SAVE10")
        lines = _lines(("prod-arduino", 3))

        calc = engine.calculate_cart(lines, "SAVE10")
        snapshot = engine.calculate_order_totals(lines, "SAVE10")

        assert snapshot.subtotal == calc.subtotal
        assert snapshot.discount_amount == calc.discount_amount
        assert snapshot.tax_amount == calc.tax_amount
        assert snapshot.total == calc.total
        assert snapshot.promo_code_snapshot == "SAVE10"
        assert snapshot.promo_code_id == calc.promo_code_id

    def test_ignored_promo_is_not_snapshotted(self, engine, arduino):
        snapshot = engine.calculate_order_totals(_lines(("prod-arduino", 1)), "NOPE")
        assert snapshot.promo_code_snapshot is None
        assert snapshot.promo_code_id is None

    def test_admin_totals_with_manual_discount(self, engine, arduino, tax_10):
        snapshot = engine.calculate_admin_order_totals(
            _lines(("prod-arduino", 3)),
            manual_discount=ManualDiscount(discount_type="fixed_amount", value=Decimal("9.97")),
        )

        assert snapshot.subtotal == Decimal("59.97")
        assert snapshot.manual_discount_amount == Decimal("9.97")
        assert snapshot.discount_amount == Decimal("9.97")
        assert snapshot.tax_amount == Decimal("5.00")
        assert snapshot.total == Decimal("55.00")

    def test_admin_totals_without_manual_discount_equal_checkout_totals(self, engine, arduino, tax_10):
        lines = _lines(("prod-arduino", 2))
        assert engine.calculate_admin_order_totals(lines) == engine.calculate_order_totals(lines)


class TestPromoPreview:
    def test_preview_on_full_amount(self, engine, make_promo):
        make_promo(code="SAVE10", applies_to_categories=["cat-boards"])
        preview = engine.preview_promo_code("save10", Decimal("80.00"))
        assert preview.promo.code == "SAVE10"
        assert preview.discount_amount == Decimal("8.00")

    def test_preview_rejects_not_started(self, engine, make_promo):
        make_promo(code="SOON", starts_at=datetime.now(UTC) + timedelta(days=2))
        with pytest.raises(PromoInvalid) as exc:
            engine.preview_promo_code("SOON", Decimal("80.00"))
        assert exc.value.reason == "NOT_STARTED"


class TestSubCentLines:
    """Lines whose rounded totals add up to more than the rounded subtotal."""

    @pytest.fixture()
    def lines(self, catalogue):
        for sku in ("a", "b", "c"):
            catalogue.add_product(f"prod-{sku}", f"Resistor {sku}", f"RES-{sku}", "0.335", stock_quantity=10)
        # Line totals round to 0.34 each (1.02); the subtotal is 1.005 rounded once.
        return _lines(("prod-a", 1), ("prod-b", 1), ("prod-c", 1))

    @pytest.mark.parametrize(
        "discount_type, discount_value",
        [("fixed_amount", 5.0), ("percentage", 100.0)],
    )
    def test_discount_never_exceeds_subtotal(self, engine, lines, make_promo, tax_10, discount_type, discount_value):
        make_promo(code="ALL", discount_type=discount_type, discount_value=discount_value)

        calc = engine.calculate_cart(lines, "ALL")

        assert calc.subtotal == Decimal("1.01")
        assert calc.discount_amount == Decimal("1.01")
        assert calc.tax_amount == Decimal("0.00")
        assert calc.total == Decimal("0.00")
        _assert_balanced(calc)

    def test_order_snapshot_is_never_negative(self, engine, lines, make_promo):
        make_promo(code="FIVE", discount_type="fixed_amount", discount_value=5.0)

        snapshot = engine.calculate_order_totals(lines, "FIVE")

        assert snapshot.discount_amount == snapshot.subtotal == Decimal("1.01")
        assert snapshot.total == Decimal("0.00")


class TestPriceQuotation:
    def test_manual_percentage_before_tax(self, engine, arduino, tax_10):
        priced = engine.price_quotation(_lines(("prod-arduino", 5)), ManualDiscount("percentage", Decimal("10")))

        snapshot = priced.snapshot
        assert snapshot.subtotal == Decimal("99.95")
        assert snapshot.discount_amount == Decimal("10.00")
        assert snapshot.manual_discount_amount == Decimal("10.00")
        assert snapshot.tax_amount == Decimal("9.00")
        assert snapshot.total == Decimal("98.95")
        assert snapshot.promo_code_id is None

    def test_fixed_discount_clamped_to_subtotal(self, engine, arduino, tax_10):
        priced = engine.price_quotation(_lines(("prod-arduino", 1)), ManualDiscount("fixed_amount", Decimal("150")))
        assert priced.snapshot.discount_amount == Decimal("19.99")
        assert priced.snapshot.total == Decimal("0.00")

    def test_quantities_beyond_stock_can_be_quoted(self, engine, arduino):
        priced = engine.price_quotation(_lines(("prod-arduino", 80)))
        assert priced.snapshot.subtotal == Decimal("1599.20")

    def test_no_flat_shipping(self, catalogue, arduino):
        engine = PricingEngine(catalogue=catalogue, config=PricingConfig(shipping_amount=Decimal("4.99")))
        assert engine.price_quotation(_lines(("prod-arduino", 1))).snapshot.shipping_amount == Decimal("0.00")

    def test_unavailable_product_still_rejected(self, engine):
        with pytest.raises(NotAvailable):
            engine.price_quotation(_lines(("prod-ghost", 1)))

    def test_empty_quotation_rejected(self, engine):
        with pytest.raises(ValidationError) as exc:
            engine.price_quotation([])
        assert "items" in exc.value.messages

"""Order totals snapshot.

An order's totals are computed exactly once, when the order is created, and
then copied onto the order as fixed-point strings. Nothing downstream
(status changes, cancellation) recomputes them.
"""

from dataclasses import dataclass
from decimal import Decimal

from protean.exceptions import ValidationError

from ordering.pricing.money import HUNDRED, ZERO, money_str, rate_str, round2, to_decimal
from ordering.pricing.ports import DiscountType
from ordering.pricing.totals import TotalsCalculator


@dataclass(frozen=True)
class ManualDiscount:
    """Discount an administrator grants on an order they create by hand."""

    discount_type: str
    value: Decimal

    def __post_init__(self):
        if self.discount_type not in (DiscountType.PERCENTAGE.value, DiscountType.FIXED_AMOUNT.value):
            raise ValidationError({"manual_discount_type": ["Manual discount must be percentage or fixed_amount"]})
        value = to_decimal(self.value)
        if value < 0:
            raise ValidationError({"manual_discount_value": ["Manual discount cannot be negative"]})
        if self.discount_type == DiscountType.PERCENTAGE.value and value > HUNDRED:
            raise ValidationError({"manual_discount_value": ["Percentage discount cannot exceed 100"]})
        object.__setattr__(self, "value", value)

    def amount_on(self, remaining: Decimal) -> Decimal:
        if self.discount_type == DiscountType.PERCENTAGE.value:
            amount = remaining * self.value / HUNDRED
        else:
            amount = min(self.value, remaining)
        return round2(max(amount, ZERO))


@dataclass(frozen=True)
class OrderTotalsSnapshot:
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total: Decimal
    currency: str
    manual_discount_amount: Decimal = ZERO
    promo_code_id: str | None = None
    promo_code_snapshot: str | None = None

    def as_strings(self) -> dict:
        """Persistable form: money with two places, the exact tax rate fraction."""
        return {
            "subtotal": money_str(self.subtotal),
            "tax_rate": rate_str(self.tax_rate),
            "tax_amount": money_str(self.tax_amount),
            "shipping_amount": money_str(self.shipping_amount),
            "discount_amount": money_str(self.discount_amount),
            "manual_discount_amount": money_str(self.manual_discount_amount),
            "total": money_str(self.total),
            "currency": self.currency,
            "promo_code_id": self.promo_code_id,
            "promo_code_snapshot": self.promo_code_snapshot,
        }


class OrderSnapshotBuilder:
    def __init__(self, totals_calculator: TotalsCalculator | None = None):
        self.totals_calculator = totals_calculator or TotalsCalculator()

    def build(self, calculation) -> OrderTotalsSnapshot:
        """Copy a cart calculation verbatim."""
        return OrderTotalsSnapshot(
            subtotal=calculation.subtotal,
            tax_rate=calculation.tax_rate,
            tax_amount=calculation.tax_amount,
            shipping_amount=calculation.shipping_amount,
            discount_amount=calculation.discount_amount,
            total=calculation.total,
            currency=calculation.currency,
            promo_code_id=calculation.promo_code_id,
            promo_code_snapshot=calculation.promo_code,
        )

    def build_with_manual_discount(self, calculation, manual: ManualDiscount | None) -> OrderTotalsSnapshot:
        """Apply an admin discount after the promo and before tax.

        ``discount_amount`` on the result is the combined discount, clamped to
        the subtotal; ``manual_discount_amount`` is the admin's share of it.
        """
        if manual is None:
            return self.build(calculation)

        promo_discount = calculation.discount_amount
        remaining = calculation.subtotal - promo_discount
        combined = min(promo_discount + manual.amount_on(remaining), calculation.subtotal)

        totals = self.totals_calculator.compute(
            calculation.subtotal,
            combined,
            calculation.tax_rate,
            calculation.shipping_amount,
        )

        return OrderTotalsSnapshot(
            subtotal=totals.subtotal,
            tax_rate=totals.tax_rate,
            tax_amount=totals.tax_amount,
            shipping_amount=totals.shipping_amount,
            discount_amount=totals.discount_amount,
            manual_discount_amount=totals.discount_amount - promo_discount,
            total=totals.total,
            currency=calculation.currency,
            promo_code_id=calculation.promo_code_id,
            promo_code_snapshot=calculation.promo_code,
        )

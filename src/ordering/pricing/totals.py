"""Tax and total computation."""

from dataclasses import dataclass
from decimal import Decimal

from ordering.pricing.money import ZERO, round2, to_decimal


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    total: Decimal


class TotalsCalculator:
    """Tax is charged on the discounted amount; shipping is added untaxed."""

    def compute(self, subtotal, discount, tax_rate, shipping=ZERO) -> Totals:
        subtotal = round2(subtotal)
        discount = round2(discount)
        shipping = round2(shipping)
        tax_rate = to_decimal(tax_rate)

        taxable = subtotal - discount
        tax = round2(taxable * tax_rate)

        return Totals(
            subtotal=subtotal,
            discount_amount=discount,
            taxable_amount=taxable,
            tax_rate=tax_rate,
            tax_amount=tax,
            shipping_amount=shipping,
            total=round2(taxable + tax + shipping),
        )

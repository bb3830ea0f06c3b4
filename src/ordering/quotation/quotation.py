"""Quotation aggregate: a priced offer drawn up by an administrator.

A quotation is priced from catalogue prices with an optional manual discount
and the store tax rate, then frozen like an order. It reserves no stock and
takes no promo code.
"""

import json
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.domain import ordering
from ordering.pricing.money import money_str
from ordering.quotation.events import QuotationCreated

DEFAULT_VALID_DAYS = 30


class QuotationStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


def quotation_number(sequence, year=None):
    """``QUO-2026-0007`` style number for the ``sequence``-th quotation of a year."""
    year = year or datetime.now(UTC).year
    return f"QUO-{year}-{sequence:04d}"


@ordering.value_object(part_of="Quotation")
class QuotationTotals:
    subtotal = String(required=True, max_length=20)
    tax_rate = String(required=True, max_length=20)
    tax_amount = String(required=True, max_length=20)
    discount_amount = String(required=True, max_length=20)
    total = String(required=True, max_length=20)
    currency = String(max_length=3, default="USD")


@ordering.entity(part_of="Quotation")
class QuotationItem:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    sku = String(required=True, max_length=50)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = String(required=True, max_length=20)
    line_total = String(required=True, max_length=20)


@ordering.aggregate
class Quotation:
    quotation_number = String(required=True, max_length=20)
    customer_id = Identifier()
    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=255)
    customer_company = String(max_length=255)
    status = String(choices=QuotationStatus, default=QuotationStatus.DRAFT.value)
    items = HasMany(QuotationItem)
    totals = ValueObject(QuotationTotals)
    notes = Text()
    valid_until = DateTime(required=True)
    created_at = DateTime()

    @invariant.post
    def quotation_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["A quotation must have at least one item"]})

    @invariant.post
    def totals_must_balance(self):
        if self.totals is None:
            return
        subtotal = Decimal(self.totals.subtotal)
        discount = Decimal(self.totals.discount_amount)
        if not 0 <= discount <= subtotal:
            raise ValidationError({"totals": [f"Discount {discount} is outside 0..{subtotal}"]})
        expected = subtotal - discount + Decimal(self.totals.tax_amount)
        if Decimal(self.totals.total) != expected:
            raise ValidationError({"totals": [f"Quotation total {self.totals.total} does not balance"]})

    @classmethod
    def create(
        cls,
        number,
        items,
        snapshot,
        customer_name,
        customer_email,
        customer_id=None,
        customer_company=None,
        notes=None,
        valid_days=DEFAULT_VALID_DAYS,
    ):
        now = datetime.now(UTC)
        quotation = cls(
            quotation_number=number,
            customer_id=customer_id,
            customer_name=customer_name,
            customer_email=customer_email.strip().lower(),
            customer_company=customer_company,
            items=[
                QuotationItem(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    sku=item.sku,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=money_str(item.unit_price),
                    line_total=money_str(item.line_total),
                )
                for item in items
            ],
            totals=QuotationTotals(
                subtotal=money_str(snapshot.subtotal),
                tax_rate=snapshot.as_strings()["tax_rate"],
                tax_amount=money_str(snapshot.tax_amount),
                discount_amount=money_str(snapshot.discount_amount),
                total=money_str(snapshot.total),
                currency=snapshot.currency,
            ),
            notes=notes,
            valid_until=now + timedelta(days=valid_days),
            created_at=now,
        )

        quotation.raise_(
            QuotationCreated(
                quotation_id=str(quotation.id),
                quotation_number=number,
                customer_id=str(customer_id) if customer_id else None,
                customer_email=quotation.customer_email,
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "variant_id": str(item.variant_id) if item.variant_id else None,
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                            "line_total": item.line_total,
                        }
                        for item in quotation.items
                    ]
                ),
                subtotal=quotation.totals.subtotal,
                discount_amount=quotation.totals.discount_amount,
                tax_amount=quotation.totals.tax_amount,
                total=quotation.totals.total,
                currency=quotation.totals.currency,
                valid_until=quotation.valid_until,
                created_at=now,
            )
        )
        return quotation

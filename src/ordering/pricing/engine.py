"""Pricing engine facade.

The single entry point for every place that needs money figures: the live
cart view, the cart's apply-promo action, checkout, admin order creation and
quotations. Carts and orders go through ``calculate_cart`` so the figures a
customer sees are the figures the order is created with; quotations share the
resolver, tax snapshot and totals arithmetic.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

import structlog
from protean.exceptions import ValidationError

from ordering.catalogue.port import CatalogueReader
from ordering.pricing.adapters import RepositoryPromoCodeReader, RepositoryTaxSettingReader
from ordering.pricing.config import PricingConfig, TaxConfig
from ordering.pricing.errors import PromoInvalid
from ordering.pricing.line_items import LineItemResolver, ResolvedLineItem
from ordering.pricing.money import ZERO, money_str, rate_str
from ordering.pricing.ports import PromoCodeReader, PromoCodeRecord, TaxSettingReader
from ordering.pricing.promotions import (
    NOT_APPLICABLE_MESSAGE,
    DiscountEligibilityFilter,
    PromoCodeValidator,
    PromoOutcome,
    PromoRejection,
    PromoResolution,
    discount_for_amount,
    normalize_code,
)
from ordering.pricing.snapshot import ManualDiscount, OrderSnapshotBuilder, OrderTotalsSnapshot
from ordering.pricing.totals import TotalsCalculator

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartCalculation:
    items: tuple[ResolvedLineItem, ...]
    item_count: int
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total: Decimal
    currency: str
    promo: PromoResolution = field(default_factory=PromoResolution.none)
    promo_code: str | None = None
    promo_code_id: str | None = None
    eligible_item_ids: tuple[str, ...] = ()

    @classmethod
    def empty(cls, currency: str, promo: PromoResolution) -> "CartCalculation":
        return cls(
            items=(),
            item_count=0,
            subtotal=ZERO,
            tax_rate=Decimal("0"),
            tax_amount=ZERO,
            shipping_amount=ZERO,
            discount_amount=ZERO,
            total=ZERO,
            currency=currency,
            promo=promo,
        )

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "item_count": self.item_count,
            "subtotal": money_str(self.subtotal),
            "tax_rate": rate_str(self.tax_rate),
            "tax_amount": money_str(self.tax_amount),
            "shipping_amount": money_str(self.shipping_amount),
            "discount_amount": money_str(self.discount_amount),
            "total": money_str(self.total),
            "currency": self.currency,
            "promo_code": self.promo_code,
            "promo_code_id": self.promo_code_id,
            "eligible_item_ids": list(self.eligible_item_ids),
            "promo": self.promo.to_dict(),
        }


@dataclass(frozen=True)
class PricedOrder:
    calculation: CartCalculation
    snapshot: OrderTotalsSnapshot


@dataclass(frozen=True)
class PromoPreview:
    """A valid promo code and the discount it would give on an order amount."""

    promo: PromoCodeRecord
    discount_amount: Decimal


class PricingEngine:
    def __init__(
        self,
        catalogue: CatalogueReader | None = None,
        promo_reader: PromoCodeReader | None = None,
        tax_reader: TaxSettingReader | None = None,
        config: PricingConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.resolver = LineItemResolver(catalogue)
        self.promo_reader = promo_reader or RepositoryPromoCodeReader()
        self.tax_reader = tax_reader or RepositoryTaxSettingReader()
        self.validator = PromoCodeValidator(self.promo_reader)
        self.eligibility = DiscountEligibilityFilter()
        self.totals = TotalsCalculator()
        self.snapshots = OrderSnapshotBuilder(self.totals)
        self.config = config or PricingConfig.from_env()
        self.clock = clock or (lambda: datetime.now(UTC))

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    def calculate_cart(self, lines, promo_code: str | None = None, *, strict: bool = False) -> CartCalculation:
        """Price a cart and apply an optional promo code.

        With ``strict`` an unusable promo code raises ``PromoInvalid``; without
        it the code is ignored, the reason is logged and recorded on the
        result, and the cart is priced as if no code had been given.
        """
        code = normalize_code(promo_code) or None
        if strict and promo_code is not None and code is None:
            raise PromoInvalid("Invalid promo code", reason=PromoRejection.INVALID_CODE.value)

        items, subtotal = self.resolver.resolve(lines)

        if not items:
            if strict and code:
                raise PromoInvalid("Cart is empty", reason=PromoRejection.NOT_APPLICABLE.value)
            promo = PromoResolution.ignored(code, None, "Cart is empty") if code else PromoResolution.none()
            return CartCalculation.empty(self.config.currency, promo)

        tax = self.tax_config()
        discount = ZERO
        promo = PromoResolution.none()
        promo_code_id = None
        eligible_item_ids = ()

        if code:
            promo, record, result = self.resolve_promo(code, items, subtotal)

            if promo.outcome is PromoOutcome.REJECTED:
                if strict:
                    raise PromoInvalid(promo.message, reason=promo.reason.value)
                logger.info("Promo code ignored", promo_code=code, reason=promo.reason.value, detail=promo.message)
                promo = PromoResolution.ignored(code, promo.reason, promo.message)
            else:
                if strict and not result.has_eligible_items:
                    raise PromoInvalid(NOT_APPLICABLE_MESSAGE, reason=PromoRejection.NOT_APPLICABLE.value)

                # A code with no eligible items stays attached with a zero discount.
                discount = min(result.discount_amount, subtotal)
                eligible_item_ids = result.eligible_item_ids
                promo_code_id = record.id

        totals = self.totals.compute(subtotal, discount, tax.rate, self.config.shipping_amount)

        return CartCalculation(
            items=tuple(items),
            item_count=sum(item.quantity for item in items),
            subtotal=totals.subtotal,
            tax_rate=totals.tax_rate,
            tax_amount=totals.tax_amount,
            shipping_amount=totals.shipping_amount,
            discount_amount=totals.discount_amount,
            total=totals.total,
            currency=self.config.currency,
            promo=promo,
            promo_code=promo.code if promo_code_id else None,
            promo_code_id=promo_code_id,
            eligible_item_ids=eligible_item_ids,
        )

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def price_order(
        self,
        lines,
        promo_code: str | None = None,
        manual_discount: ManualDiscount | None = None,
    ) -> PricedOrder:
        """Resolved lines plus the totals snapshot an order is created with."""
        calculation = self.calculate_cart(lines, promo_code)
        return PricedOrder(
            calculation=calculation,
            snapshot=self.snapshots.build_with_manual_discount(calculation, manual_discount),
        )

    def calculate_order_totals(self, lines, promo_code: str | None = None) -> OrderTotalsSnapshot:
        return self.price_order(lines, promo_code).snapshot

    def calculate_admin_order_totals(
        self,
        lines,
        promo_code: str | None = None,
        manual_discount: ManualDiscount | None = None,
    ) -> OrderTotalsSnapshot:
        return self.price_order(lines, promo_code, manual_discount).snapshot

    # -------------------------------------------------------------------
    # Quotations
    # -------------------------------------------------------------------
    def price_quotation(self, lines, manual_discount: ManualDiscount | None = None) -> PricedOrder:
        """Price a quotation: catalogue prices, an optional manual discount
        over the whole subtotal, and tax on the discounted amount.

        Quotations take no promo code, so there is no eligibility scoping and
        no ``NOT_APPLICABLE`` rejection. Stock is not checked and no shipping
        is charged.
        """
        items, subtotal = self.resolver.resolve(lines, check_stock=False)
        if not items:
            raise ValidationError({"items": ["A quotation must have at least one item"]})

        tax = self.tax_config()
        totals = self.totals.compute(subtotal, ZERO, tax.rate, ZERO)
        calculation = CartCalculation(
            items=tuple(items),
            item_count=sum(item.quantity for item in items),
            subtotal=totals.subtotal,
            tax_rate=totals.tax_rate,
            tax_amount=totals.tax_amount,
            shipping_amount=totals.shipping_amount,
            discount_amount=totals.discount_amount,
            total=totals.total,
            currency=self.config.currency,
        )
        return PricedOrder(
            calculation=calculation,
            snapshot=self.snapshots.build_with_manual_discount(calculation, manual_discount),
        )

    # -------------------------------------------------------------------
    # Promo preview
    # -------------------------------------------------------------------
    def preview_promo_code(self, code: str, order_amount: Decimal) -> PromoPreview:
        """Validate a code against a plain order amount, without a cart.

        Product and category restrictions are not evaluated here; the
        discount is previewed on the full amount.
        """
        check = self.validator.validate(code, order_amount, self.clock())
        if not check.is_valid:
            raise PromoInvalid(check.message, reason=check.reason.value)
        return PromoPreview(promo=check.promo, discount_amount=discount_for_amount(check.promo, order_amount))

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def tax_config(self) -> TaxConfig:
        setting = self.tax_reader.get_tax_setting()
        if setting is None:
            logger.warning("Tax setting not configured, charging no tax")
            return TaxConfig.disabled()
        return setting

    def resolve_promo(self, code: str, items, subtotal: Decimal):
        """Validate a code and scope it to the items.

        Returns ``(resolution, promo, discount)``. The resolution is either
        ``APPLIED`` or ``REJECTED``; callers decide which outcomes are errors.
        """
        check = self.validator.validate(code, subtotal, self.clock())
        if not check.is_valid:
            return PromoResolution.rejected(code, check.reason, check.message), check.promo, None

        result = self.eligibility.apply(check.promo, items)
        return PromoResolution.applied(check.promo.code), check.promo, result


def get_pricing_engine(**overrides) -> PricingEngine:
    """Engine wired to the active catalogue and the domain's repositories."""
    return PricingEngine(**overrides)

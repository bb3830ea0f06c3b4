"""Promo code administration: commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.promotion.promo_code import PromoCode


@ordering.command(part_of="PromoCode")
class CreatePromoCode:
    code = String(required=True, max_length=50)
    description = Text()
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True, min_value=0.0)
    minimum_order_amount = Float(min_value=0.0)
    maximum_discount_amount = Float(min_value=0.0)
    usage_limit = Integer(min_value=0)
    usage_limit_per_customer = Integer(default=1, min_value=1)
    starts_at = DateTime()
    expires_at = DateTime()
    is_active = Boolean(default=True)
    applies_to_products = Text()  # JSON array of product ids
    applies_to_categories = Text()  # JSON array of category ids


@ordering.command(part_of="PromoCode")
class DeactivatePromoCode:
    promo_code_id = Identifier(required=True)


def _load_ids(value):
    if not value:
        return None
    return json.loads(value) if isinstance(value, str) else value


@ordering.command_handler(part_of=PromoCode)
class ManagePromoCodesHandler:
    @handle(CreatePromoCode)
    def create_promo_code(self, command):
        repo = current_domain.repository_for(PromoCode)
        code = command.code.strip().upper()
        if repo._dao.query.filter(code=code).all().items:
            raise ValidationError({"code": [f"Promo code {code} already exists"]})

        promo = PromoCode.create(
            code=code,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            description=command.description,
            minimum_order_amount=command.minimum_order_amount,
            maximum_discount_amount=command.maximum_discount_amount,
            usage_limit=command.usage_limit,
            usage_limit_per_customer=command.usage_limit_per_customer,
            starts_at=command.starts_at,
            expires_at=command.expires_at,
            is_active=command.is_active,
            applies_to_products=_load_ids(command.applies_to_products),
            applies_to_categories=_load_ids(command.applies_to_categories),
        )
        repo.add(promo)
        return str(promo.id)

    @handle(DeactivatePromoCode)
    def deactivate_promo_code(self, command):
        repo = current_domain.repository_for(PromoCode)
        promo = repo.get(command.promo_code_id)
        promo.deactivate()
        repo.add(promo)

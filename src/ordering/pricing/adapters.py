"""Repository-backed readers for promo codes and the tax setting.

They translate aggregates into the engine's records: floats become
``Decimal`` through ``str`` and naive datetimes are taken as UTC.
"""

from datetime import UTC, datetime

from protean.utils.globals import current_domain

from ordering.pricing.config import TaxConfig
from ordering.pricing.money import to_decimal
from ordering.pricing.ports import PromoCodeReader, PromoCodeRecord, TaxSettingReader
from ordering.promotion.promo_code import PromoCode
from ordering.settings.tax import TAX_SETTING_KEY, TaxSetting


def _aware(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _optional_decimal(value):
    return to_decimal(value) if value is not None else None


def promo_record_from(promo: PromoCode) -> PromoCodeRecord:
    return PromoCodeRecord(
        id=str(promo.id),
        code=promo.code,
        description=promo.description,
        discount_type=promo.discount_type,
        discount_value=to_decimal(promo.discount_value),
        minimum_order_amount=_optional_decimal(promo.minimum_order_amount),
        maximum_discount_amount=_optional_decimal(promo.maximum_discount_amount),
        usage_limit=promo.usage_limit,
        usage_count=promo.usage_count or 0,
        usage_limit_per_customer=promo.usage_limit_per_customer or 1,
        starts_at=_aware(promo.starts_at),
        expires_at=_aware(promo.expires_at),
        is_active=bool(promo.is_active),
        applies_to_products=tuple(str(p) for p in promo.product_ids),
        applies_to_categories=tuple(str(c) for c in promo.category_ids),
    )


class RepositoryPromoCodeReader(PromoCodeReader):
    def _find(self, code: str) -> PromoCode | None:
        repo = current_domain.repository_for(PromoCode)
        found = repo._dao.query.filter(code=code.upper()).all().items
        return found[0] if found else None

    def get_by_code(self, code: str) -> PromoCodeRecord | None:
        promo = self._find(code)
        return promo_record_from(promo) if promo else None

    def increment_usage(self, promo_code_id: str, order_id: str | None = None) -> None:
        repo = current_domain.repository_for(PromoCode)
        promo = repo.get(promo_code_id)
        promo.record_usage(order_id=order_id)
        repo.add(promo)


class RepositoryTaxSettingReader(TaxSettingReader):
    def get_tax_setting(self) -> TaxConfig | None:
        repo = current_domain.repository_for(TaxSetting)
        settings = repo._dao.query.filter(key=TAX_SETTING_KEY).all().items
        if not settings:
            return None

        setting = settings[0]
        return TaxConfig(
            enabled=bool(setting.enabled),
            rate_percent=to_decimal(setting.rate or 0),
            label=setting.label,
        )

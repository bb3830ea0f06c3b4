"""Store-wide tax setting.

A single ``TaxSetting`` row keyed ``"tax"`` holds the flat tax rate (as a
percentage) and whether tax is charged at all. Pricing reads it once per
calculation; administrators change it with ``ConfigureTax``.
"""

from datetime import UTC, datetime

from protean import handle
from protean.fields import Boolean, DateTime, Float, String
from protean.utils.globals import current_domain

from ordering.domain import ordering

TAX_SETTING_KEY = "tax"


@ordering.event(part_of="TaxSetting")
class TaxSettingChanged:
    __version__ = 1

    setting_id = String(required=True)
    enabled = Boolean(required=True)
    rate = Float(required=True)
    label = String()


@ordering.aggregate
class TaxSetting:
    key = String(required=True, max_length=50, default=TAX_SETTING_KEY)
    enabled = Boolean(default=False)
    rate = Float(default=0.0, min_value=0.0, max_value=100.0)  # percent
    label = String(max_length=50, default="Tax")
    updated_at = DateTime()

    def configure(self, enabled, rate, label=None):
        self.enabled = enabled
        self.rate = rate
        if label:
            self.label = label
        self.updated_at = datetime.now(UTC)

        self.raise_(
            TaxSettingChanged(
                setting_id=str(self.id),
                enabled=self.enabled,
                rate=self.rate,
                label=self.label,
            )
        )


@ordering.command(part_of="TaxSetting")
class ConfigureTax:
    """Turn tax on or off and set the flat rate (percent)."""

    enabled = Boolean(required=True)
    rate = Float(required=True, min_value=0.0, max_value=100.0)
    label = String(max_length=50)


@ordering.command_handler(part_of=TaxSetting)
class ConfigureTaxHandler:
    @handle(ConfigureTax)
    def configure_tax(self, command):
        repo = current_domain.repository_for(TaxSetting)
        settings = repo._dao.query.filter(key=TAX_SETTING_KEY).all().items
        setting = settings[0] if settings else TaxSetting(key=TAX_SETTING_KEY)
        setting.configure(enabled=command.enabled, rate=command.rate, label=command.label)
        repo.add(setting)
        return str(setting.id)

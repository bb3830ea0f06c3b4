from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from ordering.catalogue import reset_catalogue, set_catalogue
from ordering.catalogue.fake_adapter import InMemoryCatalogue


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def catalogue():
    """A fresh in-memory catalogue per test, installed as the active reader."""
    catalogue = InMemoryCatalogue()
    set_catalogue(catalogue)
    yield catalogue
    reset_catalogue()


@pytest.fixture()
def arduino(catalogue):
    return catalogue.add_product(
        "prod-arduino",
        "Arduino Uno",
        "ARD-UNO",
        Decimal("19.99"),
        stock_quantity=50,
        category_id="cat-boards",
        slug="arduino-uno",
    )


@pytest.fixture()
def cable(catalogue):
    return catalogue.add_product(
        "prod-cable",
        "USB Cable",
        "USB-A-B",
        Decimal("5.00"),
        stock_quantity=100,
        category_id="cat-accessories",
        slug="usb-cable",
    )


@pytest.fixture()
def set_tax():
    """Configure the store-wide tax setting through its command."""
    from ordering.settings.tax import ConfigureTax

    def _set_tax(enabled=True, rate=10.0):
        return current_domain.process(ConfigureTax(enabled=enabled, rate=rate), asynchronous=False)

    return _set_tax


@pytest.fixture()
def make_promo():
    """Store a promo code directly through the repository."""
    from ordering.promotion.promo_code import PromoCode

    def _make_promo(code="SAVE10", discount_type="percentage", discount_value=10.0, **fields):
        promo = PromoCode.create(code=code, discount_type=discount_type, discount_value=discount_value, **fields)
        current_domain.repository_for(PromoCode).add(promo)
        return promo

    return _make_promo


@pytest.fixture()
def tax_10(set_tax):
    set_tax(enabled=True, rate=10.0)


@pytest.fixture()
def yesterday():
    return datetime.now(UTC) - timedelta(days=1)


@pytest.fixture()
def tomorrow():
    return datetime.now(UTC) + timedelta(days=1)

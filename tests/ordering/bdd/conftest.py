"""Shared BDD fixtures and step definitions for the Ordering domain."""

from decimal import Decimal

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart
from ordering.cart.management import CreateCart
from ordering.cart.promo import ApplyPromoCodeToCart
from ordering.pricing.engine import get_pricing_engine


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def result():
    """Container for the latest pricing result or placed order."""
    return {}


# ---------------------------------------------------------------------------
# Given steps: catalogue, tax and promo codes
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price} with {stock:d} in stock'))
def product_in_catalogue(catalogue, name, price, stock):
    return catalogue.add_product(_product_id(name), name, name.upper()[:10], Decimal(price), stock_quantity=stock)


@given(parsers.cfparse('a product "{name}" priced {price} in category "{category}"'))
def product_in_category(catalogue, name, price, category):
    return catalogue.add_product(
        _product_id(name), name, name.upper()[:10], Decimal(price), stock_quantity=100, category_id=category
    )


@given(parsers.cfparse("tax is enabled at {rate:g}%"))
def tax_enabled(set_tax, rate):
    set_tax(enabled=True, rate=rate)


@given("tax is disabled")
def tax_disabled(set_tax):
    set_tax(enabled=False, rate=10.0)


@given(parsers.cfparse('a promo code "{code}" giving {percent:g}% off capped at {cap:g}'))
def capped_percentage_promo(make_promo, percent, code, cap):
    make_promo(code=code, discount_type="percentage", discount_value=percent, maximum_discount_amount=cap)


@given(parsers.cfparse('a category promo code "{code}" giving {percent:g}% off category "{category}"'))
def category_percentage_promo(make_promo, percent, code, category):
    make_promo(code=code, discount_type="percentage", discount_value=percent, applies_to_categories=[category])


@given(parsers.cfparse('a promo code "{code}" giving {percent:g}% off'))
def percentage_promo(make_promo, percent, code):
    make_promo(code=code, discount_type="percentage", discount_value=percent)


@given(parsers.cfparse('a fixed {amount:g} promo code "{code}"'))
def fixed_promo(make_promo, amount, code):
    make_promo(code=code, discount_type="fixed_amount", discount_value=amount)


# ---------------------------------------------------------------------------
# Given steps: carts
# ---------------------------------------------------------------------------
@given("an active cart", target_fixture="cart_id")
def active_cart():
    return current_domain.process(CreateCart(customer_id="cust-001"), asynchronous=False)


@given(parsers.cfparse('the cart has {qty:d} of "{name}"'))
def cart_has_product(cart_id, qty, name):
    current_domain.process(AddToCart(cart_id=cart_id, product_id=_product_id(name), quantity=qty), asynchronous=False)


# ---------------------------------------------------------------------------
# When steps: shared by cart pricing and checkout
# ---------------------------------------------------------------------------
@when("the cart is priced")
def price_cart(cart_id, result):
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    result["pricing"] = get_pricing_engine().calculate_cart(cart.lines(), cart.promo_code)


@when(parsers.cfparse('the promo code "{code}" is applied to the cart'))
def apply_promo_code(cart_id, code, result, error):
    try:
        result["pricing"] = current_domain.process(
            ApplyPromoCodeToCart(cart_id=cart_id, promo_code=code), asynchronous=False
        )
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps: pricing results
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the subtotal is {amount}"))
def subtotal_is(result, amount):
    assert result["pricing"].subtotal == Decimal(amount)


@then(parsers.cfparse("the discount is {amount}"))
def discount_is(result, amount):
    assert result["pricing"].discount_amount == Decimal(amount)


@then(parsers.cfparse("the tax is {amount}"))
def tax_is(result, amount):
    assert result["pricing"].tax_amount == Decimal(amount)


@then(parsers.cfparse("the total is {amount}"))
def total_is(result, amount):
    assert result["pricing"].total == Decimal(amount)


@then("the action fails with a validation error")
def action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse('the error message is "{message}"'))
def error_message_is(error, message):
    assert error["exc"].message == message


def _product_id(name):
    return "prod-" + name.lower().replace(" ", "-")

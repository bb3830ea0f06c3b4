"""FastAPI routes for the Ordering domain: carts, orders, quotations, promo codes and tax."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddToCartRequest,
    ApplyPromoCodeRequest,
    CancelOrderRequest,
    CartIdResponse,
    CartPricingResponse,
    CheckoutRequest,
    ConfigureTaxRequest,
    CreateAdminOrderRequest,
    CreateCartRequest,
    CreatePromoCodeRequest,
    CreateQuotationRequest,
    ItemIdResponse,
    OrderIdResponse,
    OrderResponse,
    PlaceOrderRequest,
    PromoCodeIdResponse,
    PromoCodeValidationResponse,
    QuotationIdResponse,
    QuotationResponse,
    StatusResponse,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
    ValidatePromoCodeRequest,
)
from ordering.cart.cart import ShoppingCart
from ordering.cart.conversion import CheckoutCart
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import CreateCart
from ordering.cart.promo import ApplyPromoCodeToCart, RemovePromoCodeFromCart
from ordering.order.admin import CreateAdminOrder
from ordering.order.cancellation import CancelOrder
from ordering.order.order import Order
from ordering.order.placement import PlaceOrder
from ordering.order.status import UpdateOrderStatus
from ordering.pricing.engine import get_pricing_engine
from ordering.pricing.money import money_str, to_decimal
from ordering.promotion.management import CreatePromoCode
from ordering.quotation.creation import CreateQuotation
from ordering.quotation.quotation import Quotation
from ordering.settings.tax import ConfigureTax

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    command = CreateCart(
        customer_id=body.customer_id,
        session_id=body.session_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.post("/{cart_id}/items", response_model=ItemIdResponse)
async def add_cart_item(cart_id: str, body: AddToCartRequest) -> ItemIdResponse:
    command = AddToCart(
        cart_id=cart_id,
        product_id=body.product_id,
        variant_id=body.variant_id,
        quantity=body.quantity,
    )
    item_id = current_domain.process(command, asynchronous=False)
    return ItemIdResponse(item_id=item_id)


@cart_router.put("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def update_cart_item_quantity(cart_id: str, item_id: str, body: UpdateCartQuantityRequest) -> StatusResponse:
    command = UpdateCartQuantity(
        cart_id=cart_id,
        item_id=item_id,
        new_quantity=body.new_quantity,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(cart_id: str, item_id: str) -> StatusResponse:
    command = RemoveFromCart(
        cart_id=cart_id,
        item_id=item_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.get("/{cart_id}/pricing", response_model=CartPricingResponse)
async def get_cart_pricing(cart_id: str) -> CartPricingResponse:
    """Live pricing of the cart. An unusable promo code is reported, not raised."""
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    calculation = get_pricing_engine().calculate_cart(cart.lines(), cart.promo_code)
    return CartPricingResponse(**calculation.to_dict())


@cart_router.post("/{cart_id}/promo", response_model=CartPricingResponse)
async def apply_cart_promo_code(cart_id: str, body: ApplyPromoCodeRequest) -> CartPricingResponse:
    command = ApplyPromoCodeToCart(
        cart_id=cart_id,
        promo_code=body.promo_code,
    )
    calculation = current_domain.process(command, asynchronous=False)
    return CartPricingResponse(**calculation.to_dict())


@cart_router.delete("/{cart_id}/promo", response_model=StatusResponse)
async def remove_cart_promo_code(cart_id: str) -> StatusResponse:
    current_domain.process(RemovePromoCodeFromCart(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/checkout", status_code=201, response_model=OrderIdResponse)
async def checkout_cart(cart_id: str, body: CheckoutRequest | None = None) -> OrderIdResponse:
    command = CheckoutCart(
        cart_id=cart_id,
        customer_id=body.customer_id if body else None,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=order_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id) if order.customer_id else None,
        source=order.source,
        status=order.status,
        items=[
            {
                "product_id": str(item.product_id),
                "variant_id": str(item.variant_id) if item.variant_id else None,
                "sku": item.sku,
                "name": item.name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "line_total": item.line_total,
            }
            for item in order.items
        ],
        totals=order.totals.to_snapshot().as_strings(),
        cancellation_reason=order.cancellation_reason,
    )


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    command = PlaceOrder(
        customer_id=body.customer_id,
        items=json.dumps([line.model_dump() for line in body.items]),
        promo_code=body.promo_code,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=order_id)


@order_router.post("/admin", status_code=201, response_model=OrderIdResponse)
async def create_admin_order(body: CreateAdminOrderRequest) -> OrderIdResponse:
    command = CreateAdminOrder(
        customer_id=body.customer_id,
        items=json.dumps([line.model_dump() for line in body.items]),
        promo_code=body.promo_code,
        manual_discount_type=body.manual_discount_type,
        manual_discount_value=body.manual_discount_value,
        notes=body.notes,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=order_id)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return _order_response(order)


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> StatusResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        reason=body.reason,
    )
    new_status = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=new_status)


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest | None = None) -> StatusResponse:
    body = body or CancelOrderRequest()
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        cancelled_by=body.cancelled_by,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Promo Code Router
# ---------------------------------------------------------------------------
promo_router = APIRouter(prefix="/promo-codes", tags=["promo-codes"])


@promo_router.post("", status_code=201, response_model=PromoCodeIdResponse)
async def create_promo_code(body: CreatePromoCodeRequest) -> PromoCodeIdResponse:
    data = body.model_dump()
    for key in ("applies_to_products", "applies_to_categories"):
        data[key] = json.dumps(data[key]) if data[key] else None
    promo_code_id = current_domain.process(CreatePromoCode(**data), asynchronous=False)
    return PromoCodeIdResponse(promo_code_id=promo_code_id)


@promo_router.post("/validate", response_model=PromoCodeValidationResponse)
async def validate_promo_code(body: ValidatePromoCodeRequest) -> PromoCodeValidationResponse:
    """Check a code against an order amount and preview its discount."""
    preview = get_pricing_engine().preview_promo_code(body.code, to_decimal(body.order_amount))
    return PromoCodeValidationResponse(
        code=preview.promo.code,
        description=preview.promo.description,
        discount_type=preview.promo.discount_type,
        discount_value=str(preview.promo.discount_value),
        discount_amount=money_str(preview.discount_amount),
    )


# ---------------------------------------------------------------------------
# Settings Router
# ---------------------------------------------------------------------------
settings_router = APIRouter(prefix="/settings", tags=["settings"])


@settings_router.put("/tax", response_model=StatusResponse)
async def configure_tax(body: ConfigureTaxRequest) -> StatusResponse:
    command = ConfigureTax(enabled=body.enabled, rate=body.rate, label=body.label)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Quotation Router
# ---------------------------------------------------------------------------
quotation_router = APIRouter(prefix="/quotations", tags=["quotations"])


@quotation_router.post("", status_code=201, response_model=QuotationIdResponse)
async def create_quotation(body: CreateQuotationRequest) -> QuotationIdResponse:
    command = CreateQuotation(
        customer_id=body.customer_id,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        customer_company=body.customer_company,
        items=json.dumps([line.model_dump() for line in body.items]),
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        notes=body.notes,
        valid_days=body.valid_days,
    )
    quotation_id = current_domain.process(command, asynchronous=False)
    quotation = current_domain.repository_for(Quotation).get(quotation_id)
    return QuotationIdResponse(quotation_id=quotation_id, quotation_number=quotation.quotation_number)


@quotation_router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(quotation_id: str) -> QuotationResponse:
    quotation = current_domain.repository_for(Quotation).get(quotation_id)
    return QuotationResponse(
        quotation_id=str(quotation.id),
        quotation_number=quotation.quotation_number,
        customer_name=quotation.customer_name,
        customer_email=quotation.customer_email,
        status=quotation.status,
        items=[
            {
                "product_id": str(item.product_id),
                "variant_id": str(item.variant_id) if item.variant_id else None,
                "sku": item.sku,
                "name": item.name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "line_total": item.line_total,
            }
            for item in quotation.items
        ],
        totals={
            "subtotal": quotation.totals.subtotal,
            "tax_rate": quotation.totals.tax_rate,
            "tax_amount": quotation.totals.tax_amount,
            "discount_amount": quotation.totals.discount_amount,
            "total": quotation.totals.total,
            "currency": quotation.totals.currency,
        },
        valid_until=quotation.valid_until.isoformat(),
    )

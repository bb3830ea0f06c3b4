"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Money leaves the API as decimal strings.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class OrderLineSchema(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(ge=1, default=1)


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    customer_id: str | None = None
    session_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "session_id": None,
                }
            ]
        }
    }


class AddToCartRequest(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    new_quantity: int = Field(ge=1)


class ApplyPromoCodeRequest(BaseModel):
    promo_code: str = Field(min_length=1, max_length=50)


class CheckoutRequest(BaseModel):
    customer_id: str | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_id: str | None = None
    items: list[OrderLineSchema] = Field(min_length=1)
    promo_code: str | None = None


class CreateAdminOrderRequest(BaseModel):
    customer_id: str
    items: list[OrderLineSchema] = Field(min_length=1)
    promo_code: str | None = None
    manual_discount_type: str | None = Field(default=None, pattern="^(percentage|fixed_amount)$")
    manual_discount_value: float | None = Field(default=None, ge=0)
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "items": [{"product_id": "prod-arduino-uno", "quantity": 2}],
                    "promo_code": "SAVE10",
                    "manual_discount_type": "fixed_amount",
                    "manual_discount_value": 5.0,
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str
    reason: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None
    cancelled_by: str = "customer"


# ---------------------------------------------------------------------------
# Promo Code Schemas
# ---------------------------------------------------------------------------
class CreatePromoCodeRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    description: str | None = None
    discount_type: str = Field(pattern="^(percentage|fixed_amount)$")
    discount_value: float = Field(ge=0)
    minimum_order_amount: float | None = Field(default=None, ge=0)
    maximum_discount_amount: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=0)
    usage_limit_per_customer: int = Field(default=1, ge=1)
    starts_at: str | None = None  # ISO datetime
    expires_at: str | None = None  # ISO datetime
    is_active: bool = True
    applies_to_products: list[str] | None = None
    applies_to_categories: list[str] | None = None


class ValidatePromoCodeRequest(BaseModel):
    code: str = Field(min_length=1)
    order_amount: float = Field(ge=0)


class ConfigureTaxRequest(BaseModel):
    enabled: bool
    rate: float = Field(ge=0, le=100)
    label: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartIdResponse(BaseModel):
    cart_id: str


class ItemIdResponse(BaseModel):
    item_id: str


class OrderIdResponse(BaseModel):
    order_id: str


class PromoCodeIdResponse(BaseModel):
    promo_code_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class LineItemResponse(BaseModel):
    line_id: str
    product_id: str
    variant_id: str | None = None
    category_id: str | None = None
    name: str
    sku: str
    unit_price: str
    quantity: int
    line_total: str
    in_stock: bool


class PromoResolutionResponse(BaseModel):
    outcome: str
    code: str | None = None
    reason: str | None = None
    message: str | None = None


class CartPricingResponse(BaseModel):
    items: list[LineItemResponse]
    item_count: int
    subtotal: str
    tax_rate: str
    tax_amount: str
    shipping_amount: str
    discount_amount: str
    total: str
    currency: str
    promo_code: str | None = None
    promo_code_id: str | None = None
    eligible_item_ids: list[str] = []
    promo: PromoResolutionResponse | None = None


class OrderItemResponse(BaseModel):
    product_id: str
    variant_id: str | None = None
    sku: str
    name: str
    quantity: int
    unit_price: str
    line_total: str


class OrderTotalsResponse(BaseModel):
    subtotal: str
    tax_rate: str
    tax_amount: str
    shipping_amount: str
    discount_amount: str
    manual_discount_amount: str
    total: str
    currency: str
    promo_code_id: str | None = None
    promo_code_snapshot: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str | None = None
    source: str
    status: str
    items: list[OrderItemResponse]
    totals: OrderTotalsResponse
    cancellation_reason: str | None = None


class PromoCodeValidationResponse(BaseModel):
    valid: bool = True
    code: str
    discount_type: str
    discount_value: str
    discount_amount: str
    description: str | None = None


# ---------------------------------------------------------------------------
# Quotation Schemas
# ---------------------------------------------------------------------------
class CreateQuotationRequest(BaseModel):
    customer_id: str | None = None
    customer_name: str = Field(min_length=1, max_length=200)
    customer_email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    customer_company: str | None = None
    items: list[OrderLineSchema] = Field(min_length=1)
    discount_type: str | None = Field(default=None, pattern="^(percentage|fixed_amount)$")
    discount_value: float | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=2000)
    valid_days: int = Field(default=30, ge=1, le=365)


class QuotationIdResponse(BaseModel):
    quotation_id: str
    quotation_number: str


class QuotationTotalsResponse(BaseModel):
    subtotal: str
    tax_rate: str
    tax_amount: str
    discount_amount: str
    total: str
    currency: str


class QuotationResponse(BaseModel):
    quotation_id: str
    quotation_number: str
    customer_name: str
    customer_email: str
    status: str
    items: list[OrderItemResponse]
    totals: QuotationTotalsResponse
    valid_until: str

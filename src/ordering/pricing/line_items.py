"""Line item resolution.

Turns caller-supplied ``(product, variant?, quantity)`` lines into priced
items. Unit prices always come from the catalogue; a price in the request is
never trusted. Resolution is read-only: stock is checked here and moved only
by order placement.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from protean.exceptions import ValidationError

from ordering.catalogue import get_catalogue
from ordering.catalogue.port import CatalogueReader
from ordering.pricing.errors import InsufficientStock, NotAvailable, OutOfStock
from ordering.pricing.money import ZERO, round2


@dataclass(frozen=True)
class CartLineInput:
    product_id: str
    quantity: int
    variant_id: str | None = None
    line_id: str | None = None

    def __post_init__(self):
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError({"quantity": ["Quantity must be greater than zero"]})

    @classmethod
    def from_dict(cls, data: dict) -> "CartLineInput":
        return cls(
            product_id=str(data["product_id"]),
            quantity=int(data["quantity"]),
            variant_id=str(data["variant_id"]) if data.get("variant_id") else None,
            line_id=str(data["line_id"]) if data.get("line_id") else None,
        )


@dataclass(frozen=True)
class ProductSnapshot:
    name: str
    sku: str
    slug: str | None
    thumbnail: str | None
    stock_quantity: int
    in_stock: bool


@dataclass(frozen=True)
class VariantSnapshot:
    name: str
    sku: str
    options: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedLineItem:
    line_id: str
    product_id: str
    variant_id: str | None
    category_id: str | None
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    product: ProductSnapshot
    variant: VariantSnapshot | None = None

    @property
    def name(self) -> str:
        if self.variant:
            return f"{self.product.name} - {self.variant.name}"
        return self.product.name

    @property
    def sku(self) -> str:
        return self.variant.sku if self.variant else self.product.sku

    def to_dict(self) -> dict:
        return {
            "line_id": self.line_id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "category_id": self.category_id,
            "name": self.name,
            "sku": self.sku,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "line_total": str(self.line_total),
            "in_stock": self.product.in_stock,
        }


class LineItemResolver:
    """Prices cart lines against the catalogue and checks availability."""

    def __init__(self, catalogue: CatalogueReader | None = None):
        self._catalogue = catalogue

    @property
    def catalogue(self) -> CatalogueReader:
        return self._catalogue or get_catalogue()

    def resolve(self, lines, check_stock: bool = True) -> tuple[list[ResolvedLineItem], Decimal]:
        """Return the resolved items and the cart subtotal.

        The subtotal is the sum of unrounded ``unit_price * quantity`` values,
        rounded once at the end. Quotations pass ``check_stock=False``: they
        price what is asked for and reserve nothing.
        """
        items = []
        raw_subtotal = Decimal("0")

        for line in lines:
            if isinstance(line, dict):
                line = CartLineInput.from_dict(line)
            item = self.resolve_line(line, check_stock)
            raw_subtotal += item.unit_price * item.quantity
            items.append(item)

        subtotal = round2(raw_subtotal) if items else ZERO
        return items, subtotal

    def resolve_line(self, line: CartLineInput, check_stock: bool = True) -> ResolvedLineItem:
        product = self.catalogue.get_product(line.product_id)
        if product is None:
            raise NotAvailable(f"Product not found: {line.product_id}")
        if not product.is_active:
            raise NotAvailable(f"Product is not available: {product.name}")

        variant = None
        unit_price = product.base_price
        if line.variant_id:
            variant = self.catalogue.get_variant(line.variant_id)
            if variant is None or str(variant.product_id) != str(product.id):
                raise NotAvailable(f"Variant not found: {line.variant_id}")
            if not variant.is_active:
                raise NotAvailable(f"Variant is not available: {variant.name}")
            unit_price = variant.base_price

        effective_stock = variant.stock_quantity if variant else product.stock_quantity
        in_stock = effective_stock > 0 or product.allow_backorder

        if check_stock and not in_stock:
            raise OutOfStock(f"Product is out of stock: {product.name}")
        if check_stock and line.quantity > effective_stock and not product.allow_backorder:
            raise InsufficientStock(
                f"Not enough stock for {product.name}. Available: {effective_stock}",
                available=effective_stock,
            )

        return ResolvedLineItem(
            line_id=line.line_id or line.variant_id or line.product_id,
            product_id=str(product.id),
            variant_id=str(variant.id) if variant else None,
            category_id=product.category_id,
            unit_price=unit_price,
            quantity=line.quantity,
            line_total=round2(unit_price * line.quantity),
            product=ProductSnapshot(
                name=product.name,
                sku=product.sku,
                slug=product.slug,
                thumbnail=product.thumbnail,
                stock_quantity=effective_stock,
                in_stock=in_stock,
            ),
            variant=(
                VariantSnapshot(name=variant.name, sku=variant.sku, options=dict(variant.options))
                if variant
                else None
            ),
        )

"""In-memory catalogue for development and testing.

Holds product and variant rows in dictionaries and applies stock movements in
place. Every stock movement is recorded in ``calls`` so tests can assert what
order placement and cancellation did to inventory.
"""

from dataclasses import replace
from decimal import Decimal

from ordering.catalogue.port import CatalogueReader, ProductRecord, VariantRecord
from ordering.pricing.money import to_decimal


class InMemoryCatalogue(CatalogueReader):
    """Dictionary-backed catalogue."""

    def __init__(self) -> None:
        self.products: dict[str, ProductRecord] = {}
        self.variants: dict[str, VariantRecord] = {}
        self.calls: list[dict] = []

    def add_product(self, id: str, name: str, sku: str, base_price, **fields) -> ProductRecord:
        product = ProductRecord(id=id, name=name, sku=sku, base_price=to_decimal(base_price), **fields)
        self.products[id] = product
        return product

    def add_variant(self, id: str, product_id: str, name: str, sku: str, base_price, **fields) -> VariantRecord:
        variant = VariantRecord(
            id=id,
            product_id=product_id,
            name=name,
            sku=sku,
            base_price=to_decimal(base_price),
            **fields,
        )
        self.variants[id] = variant
        return variant

    def update_product(self, product_id: str, **changes) -> ProductRecord:
        if "base_price" in changes:
            changes["base_price"] = to_decimal(changes["base_price"])
        self.products[product_id] = replace(self.products[product_id], **changes)
        return self.products[product_id]

    def update_variant(self, variant_id: str, **changes) -> VariantRecord:
        if "base_price" in changes:
            changes["base_price"] = to_decimal(changes["base_price"])
        self.variants[variant_id] = replace(self.variants[variant_id], **changes)
        return self.variants[variant_id]

    def get_product(self, product_id: str) -> ProductRecord | None:
        return self.products.get(str(product_id))

    def get_variant(self, variant_id: str) -> VariantRecord | None:
        return self.variants.get(str(variant_id))

    def decrement_stock(self, product_id: str, variant_id: str | None, quantity: int) -> None:
        self.calls.append(
            {"method": "decrement_stock", "product_id": product_id, "variant_id": variant_id, "quantity": quantity}
        )
        self._adjust(product_id, variant_id, -quantity)

    def restore_stock(self, product_id: str, variant_id: str | None, quantity: int) -> None:
        self.calls.append(
            {"method": "restore_stock", "product_id": product_id, "variant_id": variant_id, "quantity": quantity}
        )
        self._adjust(product_id, variant_id, quantity)

    def _adjust(self, product_id: str, variant_id: str | None, delta: int) -> None:
        # Stock may go negative on backordered lines, as in the real catalogue.
        if variant_id and variant_id in self.variants:
            variant = self.variants[variant_id]
            self.variants[variant_id] = replace(variant, stock_quantity=variant.stock_quantity + delta)
        elif product_id in self.products:
            product = self.products[product_id]
            self.products[product_id] = replace(product, stock_quantity=product.stock_quantity + delta)


def seed_demo_catalogue(catalogue: InMemoryCatalogue) -> InMemoryCatalogue:
    """Populate a catalogue with a few rows for local development."""
    catalogue.add_product(
        "prod-arduino-uno",
        "Arduino Uno R3",
        "ARD-UNO-R3",
        Decimal("24.95"),
        stock_quantity=40,
        category_id="cat-boards",
        slug="arduino-uno-r3",
    )
    catalogue.add_product(
        "prod-jumper-wires",
        "Jumper Wire Kit",
        "JMP-KIT",
        Decimal("6.50"),
        stock_quantity=0,
        allow_backorder=True,
        category_id="cat-accessories",
        slug="jumper-wire-kit",
    )
    catalogue.add_product(
        "prod-servo",
        "Micro Servo",
        "SRV-MICRO",
        Decimal("4.20"),
        stock_quantity=100,
        category_id="cat-motors",
        slug="micro-servo",
    )
    catalogue.add_variant(
        "var-servo-metal",
        "prod-servo",
        "Metal gear",
        "SRV-MICRO-MG",
        Decimal("5.80"),
        stock_quantity=25,
        options={"gear": "metal"},
    )
    return catalogue

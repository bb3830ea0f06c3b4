"""Catalogue reader port (abstract interface).

The catalogue belongs to another bounded context. Ordering only needs to read
product and variant rows at calculation time, and to move stock when an order
is placed or cancelled. Any adapter (in-memory for development and tests, an
HTTP client or a database view in production) implements this contract.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class ProductStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class ProductRecord:
    """A product row as the catalogue exposes it."""

    id: str
    name: str
    sku: str
    base_price: Decimal
    stock_quantity: int = 0
    status: str = ProductStatus.ACTIVE.value
    allow_backorder: bool = False
    category_id: str | None = None
    slug: str | None = None
    thumbnail_url: str | None = None
    images: tuple[str, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    @property
    def thumbnail(self) -> str | None:
        """Thumbnail URL, falling back to the first gallery image."""
        if self.thumbnail_url:
            return self.thumbnail_url
        return self.images[0] if self.images else None


@dataclass(frozen=True)
class VariantRecord:
    """A purchasable variant of a product with its own price and stock."""

    id: str
    product_id: str
    name: str
    sku: str
    base_price: Decimal
    stock_quantity: int = 0
    is_active: bool = True
    options: dict[str, str] = field(default_factory=dict)


class CatalogueReader(ABC):
    """Abstract catalogue interface used by the pricing engine."""

    @abstractmethod
    def get_product(self, product_id: str) -> ProductRecord | None:
        """Fetch a product by id, or None when it does not exist."""
        ...

    @abstractmethod
    def get_variant(self, variant_id: str) -> VariantRecord | None:
        """Fetch a variant by id, or None when it does not exist."""
        ...

    @abstractmethod
    def decrement_stock(self, product_id: str, variant_id: str | None, quantity: int) -> None:
        """Take ``quantity`` units out of stock after an order is placed."""
        ...

    @abstractmethod
    def restore_stock(self, product_id: str, variant_id: str | None, quantity: int) -> None:
        """Put ``quantity`` units back into stock after a cancellation."""
        ...

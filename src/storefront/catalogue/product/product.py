"""Product aggregate: what is sold, at what price, and how much is on the shelf."""

import json
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text, ValueObject

from storefront.catalogue.product.events import (
    ProductActivated,
    ProductCreated,
    ProductDeactivated,
    ProductDetailsUpdated,
    ProductPriceChanged,
    ProductStockChanged,
)
from storefront.catalogue.shared.seo import SeoMetadata
from storefront.catalogue.shared.slug import slugify
from storefront.domain import storefront
from storefront.shared.clock import utcnow
from storefront.shared.errors import InsufficientStockError
from storefront.shared.money import SUPPORTED_CURRENCIES, round_money


class ProductStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONTINUED = "discontinued"


MAX_PRICE = 999999.99


@storefront.aggregate
class Product:
    """A sellable product.

    ``stock`` is the physical quantity on hand. Quantities held by active
    reservations are subtracted from it when computing what can still be sold
    (see ``storefront.inventory.availability``).
    """

    name: String(required=True, max_length=255)
    sku: String(required=True, max_length=50, unique=True)
    slug: String(max_length=200)
    description: Text()
    price: Float(required=True, min_value=0.01, max_value=MAX_PRICE)
    compare_price: Float(min_value=0.0)
    currency: String(max_length=3, default="USD")
    stock: Integer(default=0, min_value=0)
    category_id: Identifier()
    status: String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    weight: Float(default=0.0, min_value=0.0)
    tags: Text()  # JSON array of strings
    is_featured: Boolean(default=False)
    seo: ValueObject(SeoMetadata)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def currency_must_be_supported(self):
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValidationError({"currency": [f"Unsupported currency: {self.currency}"]})

    @invariant.post
    def compare_price_must_exceed_price(self):
        if self.compare_price and self.compare_price <= self.price:
            raise ValidationError({"compare_price": ["Compare price must be greater than the selling price"]})

    @classmethod
    def create(
        cls,
        name,
        sku,
        price,
        description=None,
        stock=0,
        category_id=None,
        currency="USD",
        compare_price=None,
        weight=0.0,
        tags=None,
        is_featured=False,
        status=ProductStatus.ACTIVE.value,
        seo=None,
        slug=None,
    ):
        now = utcnow()
        tags_json = json.dumps(tags or [])

        product = cls(
            name=name,
            sku=sku.upper(),
            slug=slug or slugify(name),
            description=description,
            price=round_money(price),
            compare_price=compare_price,
            currency=currency,
            stock=stock,
            category_id=category_id,
            status=status,
            weight=weight,
            tags=tags_json,
            is_featured=is_featured,
            seo=seo,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=product.id,
                sku=product.sku,
                name=name,
                slug=product.slug,
                description=description,
                price=product.price,
                currency=currency,
                stock=stock,
                category_id=category_id,
                tags=tags_json,
                status=status,
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def tag_list(self) -> list[str]:
        return json.loads(self.tags) if self.tags else []

    def is_available(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value and (self.stock or 0) > 0

    def has_stock(self, quantity) -> bool:
        return (self.stock or 0) >= quantity

    # -------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------
    def update_details(self, name=None, description=None, category_id=None, tags=None, weight=None, is_featured=None):
        with atomic_change(self):
            if name is not None:
                self.name = name
                self.slug = slugify(name)
            if description is not None:
                self.description = description
            if category_id is not None:
                self.category_id = category_id
            if tags is not None:
                self.tags = json.dumps(tags)
            if weight is not None:
                self.weight = weight
            if is_featured is not None:
                self.is_featured = is_featured
            self.updated_at = utcnow()

        self.raise_(
            ProductDetailsUpdated(
                product_id=self.id,
                name=self.name,
                slug=self.slug,
                description=self.description,
                category_id=self.category_id,
                tags=self.tags,
            )
        )

    def update_seo(self, seo):
        self.seo = seo
        self.updated_at = utcnow()

    def change_price(self, new_price, compare_price=None):
        if new_price is None or new_price <= 0:
            raise ValidationError({"price": ["Price must be greater than zero"]})

        previous_price = self.price
        with atomic_change(self):
            self.price = round_money(new_price)
            self.compare_price = compare_price
            self.updated_at = utcnow()

        self.raise_(
            ProductPriceChanged(
                product_id=self.id,
                previous_price=previous_price,
                new_price=self.price,
            )
        )

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def set_stock(self, quantity, reason="adjustment"):
        if quantity is None or quantity < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})
        self._change_stock(quantity, reason)

    def reduce_stock(self, quantity, reason="sale"):
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if not self.has_stock(quantity):
            raise InsufficientStockError(self.id, quantity, self.stock or 0, product_name=self.name)
        self._change_stock(self.stock - quantity, reason)

    def restore_stock(self, quantity, reason="restock"):
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self._change_stock((self.stock or 0) + quantity, reason)

    def _change_stock(self, new_stock, reason):
        previous = self.stock or 0
        self.stock = new_stock
        self.updated_at = utcnow()
        self.raise_(
            ProductStockChanged(
                product_id=self.id,
                previous_stock=previous,
                new_stock=new_stock,
                reason=reason,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def activate(self):
        if self.status == ProductStatus.ACTIVE.value:
            raise ValidationError({"status": ["Product is already active"]})
        if self.status == ProductStatus.DISCONTINUED.value:
            raise ValidationError({"status": ["Discontinued products cannot be reactivated"]})

        now = utcnow()
        self.status = ProductStatus.ACTIVE.value
        self.updated_at = now
        self.raise_(ProductActivated(product_id=self.id, activated_at=now))

    def deactivate(self):
        if self.status != ProductStatus.ACTIVE.value:
            raise ValidationError({"status": ["Only active products can be deactivated"]})
        self._withdraw(ProductStatus.INACTIVE)

    def discontinue(self):
        if self.status == ProductStatus.DISCONTINUED.value:
            raise ValidationError({"status": ["Product is already discontinued"]})
        self._withdraw(ProductStatus.DISCONTINUED)

    def _withdraw(self, status):
        now = utcnow()
        self.status = status.value
        self.updated_at = now
        self.raise_(ProductDeactivated(product_id=self.id, status=status.value, deactivated_at=now))


@storefront.repository(part_of=Product)
class ProductRepository:
    def by_sku(self, sku: str) -> Product | None:
        return self._dao.query.filter(sku=sku.upper()).all().first

    def by_ids(self, product_ids) -> dict[str, Product]:
        """Products keyed by id; unknown ids are left out."""
        wanted = {str(pid) for pid in product_ids}
        if not wanted:
            return {}
        products = self._dao.query.filter(id__in=list(wanted)).all().items
        return {str(p.id): p for p in products}

    def in_categories(self, category_ids) -> list[Product]:
        ids = [str(cid) for cid in category_ids]
        if not ids:
            return []
        return self._dao.query.filter(category_id__in=ids).all().items

    def active(self) -> list[Product]:
        return self._dao.query.filter(status=ProductStatus.ACTIVE.value).all().items

"""Product management: commands and handlers."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.catalogue.shared.seo import SeoMetadata
from storefront.domain import storefront


@storefront.command(part_of="Product")
class CreateProduct:
    name: String(required=True, max_length=255)
    sku: String(required=True, max_length=50)
    price: Float(required=True)
    description: Text()
    stock: Integer(default=0)
    category_id: Identifier()
    currency: String(max_length=3, default="USD")
    compare_price: Float()
    weight: Float(default=0.0)
    tags: Text()  # JSON array
    is_featured: Boolean(default=False)
    status: String(max_length=20)


@storefront.command(part_of="Product")
class UpdateProduct:
    product_id: Identifier(required=True)
    name: String(max_length=255)
    description: Text()
    category_id: Identifier()
    tags: Text()
    weight: Float()
    is_featured: Boolean()


@storefront.command(part_of="Product")
class ChangeProductPrice:
    product_id: Identifier(required=True)
    price: Float(required=True)
    compare_price: Float()


@storefront.command(part_of="Product")
class UpdateProductSeo:
    product_id: Identifier(required=True)
    seo: Text(required=True)  # JSON object of SeoMetadata fields


@storefront.command(part_of="Product")
class UpdateProductStock:
    product_id: Identifier(required=True)
    stock: Integer(required=True)
    reason: String(max_length=50, default="adjustment")


@storefront.command(part_of="Product")
class ActivateProduct:
    product_id: Identifier(required=True)


@storefront.command(part_of="Product")
class DeactivateProduct:
    product_id: Identifier(required=True)


@storefront.command(part_of="Product")
class DiscontinueProduct:
    product_id: Identifier(required=True)


def _loads(value):
    return json.loads(value) if isinstance(value, str) else value


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        repo = current_domain.repository_for(Product)
        if repo.by_sku(command.sku) is not None:
            raise ValidationError({"sku": [f"A product with SKU {command.sku.upper()} already exists"]})

        optional = {}
        if command.status:
            optional["status"] = command.status

        product = Product.create(
            name=command.name,
            sku=command.sku,
            price=command.price,
            description=command.description,
            stock=command.stock or 0,
            category_id=command.category_id,
            currency=command.currency or "USD",
            compare_price=command.compare_price,
            weight=command.weight or 0.0,
            tags=_loads(command.tags) if command.tags else None,
            is_featured=bool(command.is_featured),
            **optional,
        )
        repo.add(product)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.update_details(
            name=command.name,
            description=command.description,
            category_id=command.category_id,
            tags=_loads(command.tags) if command.tags is not None else None,
            weight=command.weight,
            is_featured=command.is_featured,
        )
        repo.add(product)

    @handle(ChangeProductPrice)
    def change_price(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.change_price(command.price, compare_price=command.compare_price)
        repo.add(product)

    @handle(UpdateProductSeo)
    def update_seo(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.update_seo(SeoMetadata(**_loads(command.seo)))
        repo.add(product)

    @handle(UpdateProductStock)
    def update_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.set_stock(command.stock, reason=command.reason or "adjustment")
        repo.add(product)

    @handle(ActivateProduct)
    def activate(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.activate()
        repo.add(product)

    @handle(DeactivateProduct)
    def deactivate(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate()
        repo.add(product)

    @handle(DiscontinueProduct)
    def discontinue(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.discontinue()
        repo.add(product)

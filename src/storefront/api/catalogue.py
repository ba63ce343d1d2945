"""FastAPI endpoints for products and categories."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    ChangePriceRequest,
    CreateCategoryRequest,
    CreateProductRequest,
    IdResponse,
    MoveCategoryRequest,
    ReorderCategoriesRequest,
    SeoSchema,
    StatusResponse,
    UpdateCategoryRequest,
    UpdateProductRequest,
    UpdateStockRequest,
)
from storefront.catalogue.category.hierarchy import CategoryHierarchy
from storefront.catalogue.category.management import (
    CreateCategory,
    DeleteCategory,
    MoveCategory,
    ReorderCategories,
    UpdateCategory,
    UpdateCategorySeo,
)
from storefront.catalogue.product.management import (
    ActivateProduct,
    ChangeProductPrice,
    CreateProduct,
    DeactivateProduct,
    UpdateProduct,
    UpdateProductSeo,
    UpdateProductStock,
)
from storefront.catalogue.product.product import Product
from storefront.inventory.availability import available_stock

product_router = APIRouter(prefix="/products", tags=["products"])
category_router = APIRouter(prefix="/categories", tags=["categories"])


# --- Product endpoints ---


@product_router.post("", status_code=201, response_model=IdResponse)
async def create_product(body: CreateProductRequest) -> IdResponse:
    command = CreateProduct(
        name=body.name,
        sku=body.sku,
        price=body.price,
        description=body.description,
        stock=body.stock,
        category_id=body.category_id,
        currency=body.currency,
        compare_price=body.compare_price,
        weight=body.weight,
        tags=json.dumps(body.tags),
        is_featured=body.is_featured,
        status=body.status,
    )
    result = current_domain.process(command, asynchronous=False)
    return IdResponse(id=result)


@product_router.get("/{product_id}")
async def get_product(product_id: str) -> dict:
    product = current_domain.repository_for(Product).get(product_id)
    data = product.to_dict()
    data["available_stock"] = available_stock(product.id, product=product)
    return data


@product_router.put("/{product_id}", response_model=StatusResponse)
async def update_product(product_id: str, body: UpdateProductRequest) -> StatusResponse:
    command = UpdateProduct(
        product_id=product_id,
        name=body.name,
        description=body.description,
        category_id=body.category_id,
        tags=json.dumps(body.tags) if body.tags is not None else None,
        weight=body.weight,
        is_featured=body.is_featured,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.put("/{product_id}/price", response_model=StatusResponse)
async def change_price(product_id: str, body: ChangePriceRequest) -> StatusResponse:
    command = ChangeProductPrice(product_id=product_id, price=body.price, compare_price=body.compare_price)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.put("/{product_id}/stock", response_model=StatusResponse)
async def update_stock(product_id: str, body: UpdateStockRequest) -> StatusResponse:
    command = UpdateProductStock(product_id=product_id, stock=body.stock, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.put("/{product_id}/seo", response_model=StatusResponse)
async def update_product_seo(product_id: str, body: SeoSchema) -> StatusResponse:
    command = UpdateProductSeo(product_id=product_id, seo=body.model_dump_json(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.put("/{product_id}/activate", response_model=StatusResponse)
async def activate_product(product_id: str) -> StatusResponse:
    current_domain.process(ActivateProduct(product_id=product_id), asynchronous=False)
    return StatusResponse()


@product_router.put("/{product_id}/deactivate", response_model=StatusResponse)
async def deactivate_product(product_id: str) -> StatusResponse:
    current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
    return StatusResponse()


# --- Category endpoints ---


@category_router.post("", status_code=201, response_model=IdResponse)
async def create_category(body: CreateCategoryRequest) -> IdResponse:
    command = CreateCategory(
        name=body.name,
        parent_id=body.parent_id,
        description=body.description,
        sort_order=body.sort_order,
    )
    result = current_domain.process(command, asynchronous=False)
    return IdResponse(id=result)


@category_router.get("/tree")
async def category_tree() -> list[dict]:
    return CategoryHierarchy.load().tree(include_inactive=False)


@category_router.get("/{category_id}/breadcrumbs")
async def category_breadcrumbs(category_id: str) -> list[dict]:
    return CategoryHierarchy.load().breadcrumbs(category_id)


@category_router.put("/reorder", response_model=StatusResponse)
async def reorder_categories(body: ReorderCategoriesRequest) -> StatusResponse:
    command = ReorderCategories(orders=json.dumps([entry.model_dump() for entry in body.orders]))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@category_router.put("/{category_id}", response_model=StatusResponse)
async def update_category(category_id: str, body: UpdateCategoryRequest) -> StatusResponse:
    command = UpdateCategory(
        category_id=category_id,
        name=body.name,
        description=body.description,
        image_url=body.image_url,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@category_router.put("/{category_id}/seo", response_model=StatusResponse)
async def update_category_seo(category_id: str, body: SeoSchema) -> StatusResponse:
    command = UpdateCategorySeo(category_id=category_id, seo=body.model_dump_json(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@category_router.put("/{category_id}/move", response_model=StatusResponse)
async def move_category(category_id: str, body: MoveCategoryRequest) -> StatusResponse:
    command = MoveCategory(
        category_id=category_id,
        new_parent_id=body.new_parent_id,
        validate_only=body.validate_only,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@category_router.delete("/{category_id}", response_model=StatusResponse)
async def delete_category(category_id: str) -> StatusResponse:
    current_domain.process(DeleteCategory(category_id=category_id), asynchronous=False)
    return StatusResponse()

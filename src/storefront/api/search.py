"""FastAPI endpoints for product search."""

from fastapi import APIRouter, Query

from storefront.api.schemas import SearchHit, SearchResponse
from storefront.search.service import DEFAULT_PAGE_SIZE, autocomplete, search_products, suggest

search_router = APIRouter(prefix="/search", tags=["search"])


@search_router.get("", response_model=SearchResponse)
async def search(
    q: str | None = None,
    category_id: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    in_stock: bool | None = None,
    sort: str = "relevance",
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=100),
) -> SearchResponse:
    result = search_products(
        query=q,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        sort=sort,
        page=page,
        page_size=page_size,
    )
    return SearchResponse(
        items=[
            SearchHit(
                product_id=str(entry.product_id),
                name=entry.name,
                sku=entry.sku,
                slug=entry.slug,
                price=entry.price,
                currency=entry.currency,
                category_id=str(entry.category_id) if entry.category_id else None,
                in_stock=bool(entry.in_stock),
            )
            for entry in result.items
        ],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        facets=result.facets,
    )


@search_router.get("/suggestions")
async def suggestions(q: str, limit: int = Query(default=10, ge=1, le=50)) -> list[str]:
    return suggest(q, limit=limit)


@search_router.get("/autocomplete")
async def autocomplete_terms(q: str, limit: int = Query(default=10, ge=1, le=50)) -> list[str]:
    return autocomplete(q, limit=limit)

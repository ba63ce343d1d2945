"""Product search over the search index: filtering, ranking, facets and suggestions.

The index is small enough per query that matching and ranking happen in
Python over the active rows; the store only narrows by status.
"""

import json
from dataclasses import dataclass, field

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.search.index import SearchIndexEntry

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_SUGGESTION_LIMIT = 10

SORT_OPTIONS = ("relevance", "price_asc", "price_desc", "newest", "name")

# (label, lower bound inclusive, upper bound exclusive)
PRICE_BANDS = (
    ("0-25", 0, 25),
    ("25-50", 25, 50),
    ("50-100", 50, 100),
    ("100-250", 100, 250),
    ("250+", 250, None),
)


@dataclass
class SearchResult:
    items: list
    total: int
    page: int
    page_size: int
    facets: dict = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size if self.page_size else 0


def _terms(query) -> list[str]:
    return [term for term in (query or "").lower().split() if term]


def _tags(entry) -> list[str]:
    return [str(tag).lower() for tag in json.loads(entry.tags)] if entry.tags else []


def _score(entry, terms) -> int | None:
    """Relevance score, or ``None`` when some term matches nothing."""
    name = (entry.name or "").lower()
    description = (entry.description or "").lower()
    sku = (entry.sku or "").lower()
    tags = _tags(entry)

    score = 0
    for term in terms:
        hit = 0
        if term in name:
            hit += 10 if name.startswith(term) else 5
        if term in sku:
            hit += 4
        if any(term in tag for tag in tags):
            hit += 3
        if term in description:
            hit += 1
        if not hit:
            return None
        score += hit
    return score


def _price_band(price) -> str:
    for label, low, high in PRICE_BANDS:
        if price >= low and (high is None or price < high):
            return label
    return PRICE_BANDS[0][0]


def _active_entries() -> list[SearchIndexEntry]:
    return current_domain.repository_for(SearchIndexEntry)._dao.query.filter(status="active").all().items


def _facets(entries) -> dict:
    categories: dict[str, int] = {}
    bands = {label: 0 for label, _, _ in PRICE_BANDS}
    availability = {"in_stock": 0, "out_of_stock": 0}

    for entry in entries:
        if entry.category_id:
            key = str(entry.category_id)
            categories[key] = categories.get(key, 0) + 1
        bands[_price_band(entry.price)] += 1
        availability["in_stock" if entry.in_stock else "out_of_stock"] += 1

    return {"categories": categories, "price_ranges": bands, "availability": availability}


def search_products(
    query=None,
    category_id=None,
    min_price=None,
    max_price=None,
    in_stock=None,
    sort="relevance",
    page=1,
    page_size=DEFAULT_PAGE_SIZE,
) -> SearchResult:
    sort = sort or "relevance"
    if sort not in SORT_OPTIONS:
        raise ValidationError({"sort": [f"Sort must be one of: {', '.join(SORT_OPTIONS)}"]})
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ValidationError({"min_price": ["Minimum price cannot exceed maximum price"]})

    page = max(page or 1, 1)
    page_size = min(max(page_size or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)
    terms = _terms(query)

    scored = []
    for entry in _active_entries():
        score = _score(entry, terms) if terms else 0
        if score is None:
            continue
        scored.append((score, entry))

    # Facets describe the text matches before the refining filters apply
    facets = _facets(entry for _, entry in scored)

    def keep(entry):
        if category_id and str(entry.category_id) != str(category_id):
            return False
        if min_price is not None and entry.price < min_price:
            return False
        if max_price is not None and entry.price > max_price:
            return False
        if in_stock is not None and bool(entry.in_stock) != bool(in_stock):
            return False
        return True

    matches = [(score, entry) for score, entry in scored if keep(entry)]

    if sort == "price_asc":
        matches.sort(key=lambda pair: (pair[1].price, pair[1].name.lower()))
    elif sort == "price_desc":
        matches.sort(key=lambda pair: (-pair[1].price, pair[1].name.lower()))
    elif sort == "newest":
        matches.sort(key=lambda pair: pair[1].created_at.timestamp() if pair[1].created_at else 0, reverse=True)
    elif sort == "name":
        matches.sort(key=lambda pair: pair[1].name.lower())
    else:
        matches.sort(key=lambda pair: (-pair[0], pair[1].name.lower()))

    start = (page - 1) * page_size
    return SearchResult(
        items=[entry for _, entry in matches[start : start + page_size]],
        total=len(matches),
        page=page,
        page_size=page_size,
        facets=facets,
    )


def suggest(prefix, limit=DEFAULT_SUGGESTION_LIMIT) -> list[str]:
    """Product names matching ``prefix``; names that start with it come first."""
    needle = (prefix or "").strip().lower()
    if not needle:
        return []

    starts, contains = [], []
    for entry in _active_entries():
        name = entry.name or ""
        lowered = name.lower()
        if lowered.startswith(needle):
            starts.append(name)
        elif needle in lowered:
            contains.append(name)

    return (sorted(set(starts), key=str.lower) + sorted(set(contains), key=str.lower))[:limit]


def autocomplete(prefix, limit=DEFAULT_SUGGESTION_LIMIT) -> list[str]:
    """Distinct words from product names and tags that start with ``prefix``."""
    needle = (prefix or "").strip().lower()
    if not needle:
        return []

    words = set()
    for entry in _active_entries():
        for word in (entry.name or "").lower().split():
            if word.startswith(needle):
                words.add(word)
        for tag in _tags(entry):
            if tag.startswith(needle):
                words.add(tag)

    return sorted(words)[:limit]

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

from pydantic import ValidationError

from avisscore.core.display import parse_specs
from avisscore.core.store import ProductStore
from avisscore.models.schemas import Product, Review

logger = logging.getLogger(__name__)

VERIFIED_AUTHOR = "Utilisateur vérifié"
COMMUNITY_AUTHOR = "Expert Web"
EXTRACT_MAX_LENGTH = 150
MIN_SEARCH_LENGTH = 2


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _with_iso_dates(row: Dict[str, Any]) -> Dict[str, Any]:
    created_at = row.get("created_at")
    if created_at is not None and hasattr(created_at, "isoformat"):
        return {**row, "created_at": created_at.isoformat()}
    return row


def _review_from_row(row: Dict[str, Any], **overrides: Any) -> Review:
    data = _with_iso_dates(row)
    return Review(**{
        **data,
        "id": str(data.get("id")),
        "review_text": data.get("review_text") or "",
        **overrides,
    })


def normalize_product_row(row: Dict[str, Any], reviews: List[Dict[str, Any]]) -> Product:
    """Coerce loosely-typed columns so views never see NULL lists"""
    data = _with_iso_dates(dict(row))
    specs = parse_specs(data.get("fiche_technique"))
    data["fiche_technique"] = specs or parse_specs(data.get("specs") or data.get("tech"))
    data["points_forts"] = [str(p) for p in _as_list(data.get("points_forts"))]
    data["points_faibles"] = [str(p) for p in _as_list(data.get("points_faibles"))]
    data["cycle_de_vie"] = [str(c) for c in _as_list(data.get("cycle_de_vie"))]
    data["id"] = str(data.get("id"))
    data["description"] = data.get("description") or ""
    data["reviews"] = [
        _review_from_row(review, product_id=data["id"])
        for review in reviews
    ]
    return Product(**data)


def resolve_product(store: ProductStore, target: str, by_id: bool = False) -> Optional[Product]:
    """
    Fetch a product and its reviews by identifier or by name.

    Name lookups accept a slug ("iphone-15") or free text ("iPhone 15") and
    match case-insensitively on substrings. Returns None when nothing
    matches or the backend fails.
    """
    try:
        clean_target = unquote(target or "").strip()
        if not clean_target:
            return None

        if by_id:
            row = store.get_product(clean_target)
        else:
            search_name = clean_target.replace("-", " ")
            row = store.find_product(clean_target, search_name)

        if not row:
            logger.info(f"Product not found: {clean_target}")
            return None

        reviews = store.get_reviews(str(row.get("id")))
        product = normalize_product_row(row, reviews)
        logger.info(f"Resolved product {product.name} with {len(product.reviews)} reviews")
        return product

    except ValidationError as e:
        logger.error(f"Invalid product record for {target}: {e}")
        return None
    except Exception as e:
        logger.error(f"Error resolving product {target}: {e}")
        return None


def _rows_to_products(rows: List[Dict[str, Any]]) -> List[Product]:
    products = []
    for row in rows:
        try:
            products.append(normalize_product_row(row, []))
        except ValidationError as e:
            logger.error(f"Skipping invalid product record {row.get('id')}: {e}")
    return products


def search_products(store: ProductStore, query: str, limit: int = 5) -> List[Product]:
    """Autocomplete lookup used by the comparator"""
    query = (query or "").strip()
    if len(query) < MIN_SEARCH_LENGTH:
        return []
    try:
        return _rows_to_products(store.search_products(query, limit))
    except Exception as e:
        logger.error(f"Error searching products for {query}: {e}")
        return []


def fetch_home_products(store: ProductStore, limit: int = 100) -> List[Product]:
    try:
        return _rows_to_products(store.list_products(limit))
    except Exception as e:
        logger.error(f"Error fetching home products: {e}")
        return []


def fetch_similar_products(store: ProductStore, product: Product, limit: int = 6) -> List[Product]:
    if not product.category:
        return []
    try:
        return _rows_to_products(store.similar_products(product.category, product.id, limit))
    except Exception as e:
        logger.error(f"Error fetching similar products for {product.id}: {e}")
        return []


def fetch_latest_reviews(store: ProductStore, limit: int = 12) -> List[Review]:
    """Most recent entries of the `my_reviews` feed"""
    try:
        rows = store.latest_reviews(limit)
    except Exception as e:
        logger.error(f"Error fetching latest reviews: {e}")
        return []
    # the feed has no author column
    reviews = []
    for row in rows:
        try:
            reviews.append(_review_from_row(row, author_name=VERIFIED_AUTHOR))
        except ValidationError as e:
            logger.error(f"Skipping invalid review record {row.get('id')}: {e}")
    return reviews


def fetch_unique_product_names(store: ProductStore, limit: int = 500) -> List[str]:
    reviews = fetch_latest_reviews(store, limit)
    names = {r.product_name for r in reviews if isinstance(r.product_name, str) and r.product_name}
    return sorted(names)


def _first_review_text(value: Any) -> str:
    if isinstance(value, list) and value:
        first = value[0]
        if isinstance(first, str):
            return first
        if isinstance(first, dict):
            return first.get("content") or first.get("text") or ""
        return ""
    if isinstance(value, str) and len(value) > 5:
        return value
    if isinstance(value, dict):
        return value.get("content") or value.get("text") or ""
    return ""


def truncate_extract(text: str, max_length: int = EXTRACT_MAX_LENGTH) -> str:
    if len(text) > max_length:
        return text[:max_length - 3] + "..."
    return text


def fetch_community_extracts(store: ProductStore, limit: int = 4) -> List[Dict[str, Any]]:
    """Short review extracts for the home page, one per product"""
    try:
        rows = store.list_products(100)
    except Exception as e:
        logger.error(f"Error fetching community extracts: {e}")
        return []

    extracts = []
    for row in rows:
        text = _first_review_text(row.get("review_text"))
        if not isinstance(text, str) or not text.strip():
            continue
        extracts.append({
            "id": f"rev-home-{row.get('product_slug')}",
            "author_name": COMMUNITY_AUTHOR,
            "review_text": truncate_extract(text),
            "rating": row.get("rating") or 4.5,
            "created_at": row.get("created_at"),
            "product": {
                "name": row.get("name"),
                "image_url": row.get("image_url"),
                "category": row.get("category"),
                "product_slug": row.get("product_slug"),
            },
        })
        if len(extracts) >= limit:
            break
    return extracts

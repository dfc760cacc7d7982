import logging
from typing import Any, Dict, List, Optional

from avisscore.core.display import (first_image, is_price_error, normalize_image_url,
                                    split_spec_line, to_score10)
from avisscore.core.resolver import fetch_similar_products, resolve_product
from avisscore.core.store import ProductStore
from avisscore.models.schemas import Product

logger = logging.getLogger(__name__)

MAX_COMPARED = 4


def product_score(product: Product) -> float:
    return float(product.score or 0)


def pick_best_product(products: List[Product]) -> Optional[Product]:
    """Highest score wins; needs at least two products to compare"""
    if len(products) < 2:
        return None
    return sorted(products, key=product_score, reverse=True)[0]


def toggle_product(selected: List[Product], product: Product) -> List[Product]:
    """Add or remove a product from the comparison, capped at MAX_COMPARED"""
    if any(p.id == product.id for p in selected):
        return [p for p in selected if p.id != product.id]
    if len(selected) >= MAX_COMPARED:
        return list(selected)
    return [*selected, product]


def comparison_column(product: Product) -> Dict[str, Any]:
    current = product.current_price if product.current_price is not None else product.price
    return {
        "id": product.id,
        "name": product.name,
        "image_url": normalize_image_url(first_image(product.image_url)),
        "score": to_score10(product.score if product.score is not None else product.rating),
        "price": current,
        "price_error": is_price_error(current, product.reference_price),
        "specs": dict(split_spec_line(line) for line in product.fiche_technique),
        "points_forts": [p.strip('[]"') for p in product.points_forts],
        "points_faibles": [p.strip('[]"') for p in product.points_faibles],
    }


def build_comparison(store: ProductStore, product_ids: List[str]) -> Dict[str, Any]:
    selected: List[Product] = []
    for product_id in product_ids:
        product = resolve_product(store, product_id, by_id=True)
        if product is None:
            logger.info(f"Skipping unknown product in comparison: {product_id}")
            continue
        if any(p.id == product.id for p in selected):
            continue
        selected = toggle_product(selected, product)

    best = pick_best_product(selected)
    similar = fetch_similar_products(store, selected[0]) if selected else []
    spec_labels: List[str] = []
    columns = [comparison_column(p) for p in selected]
    for column in columns:
        for label in column["specs"]:
            if label not in spec_labels:
                spec_labels.append(label)

    return {
        "products": columns,
        "spec_labels": spec_labels,
        "best_product_id": best.id if best else None,
        "similar": [
            {"id": p.id, "name": p.name, "image_url": normalize_image_url(first_image(p.image_url))}
            for p in similar
            if all(p.id != s.id for s in selected)
        ],
    }

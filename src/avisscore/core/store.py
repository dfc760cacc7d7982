"""
Backends for the product catalog.

Stores return plain dict rows and let backend errors propagate; the
resolver decides how failures are reported.
"""
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from google.cloud import bigquery

from avisscore import config

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def normalize_product_name(product_name: str) -> str:
    """Normalize product name for comparison"""
    if not product_name:
        return ""
    normalized = product_name.lower().strip()
    normalized = re.sub(r'\s+', ' ', normalized)
    return normalized


class ProductStore:
    """Read-only access to the `products`, `reviews` and `my_reviews` tables"""

    def get_product(self, product_id: str) -> Optional[Row]:
        raise NotImplementedError

    def find_product(self, slug: str, name: str) -> Optional[Row]:
        """Exact slug match, or case-insensitive substring match on name/link"""
        raise NotImplementedError

    def get_reviews(self, product_id: str) -> List[Row]:
        raise NotImplementedError

    def search_products(self, name: str, limit: int) -> List[Row]:
        raise NotImplementedError

    def list_products(self, limit: int) -> List[Row]:
        raise NotImplementedError

    def similar_products(self, category: str, exclude_id: str, limit: int) -> List[Row]:
        raise NotImplementedError

    def latest_reviews(self, limit: int) -> List[Row]:
        raise NotImplementedError


class BigQueryProductStore(ProductStore):

    def __init__(self, client: Optional[bigquery.Client] = None):
        self.client = client or bigquery.Client(project=config.BIGQUERY_PROJECT)

    def _query(self, query: str, params: List[bigquery.ScalarQueryParameter]) -> List[Row]:
        job_config = bigquery.QueryJobConfig(query_parameters=params)
        query_job = self.client.query(query, job_config=job_config)
        return [dict(row.items()) for row in query_job.result()]

    def get_product(self, product_id: str) -> Optional[Row]:
        query = f"""
        SELECT *
        FROM `{config.PRODUCTS_TABLE}`
        WHERE id = @product_id
        LIMIT 1
        """
        rows = self._query(query, [
            bigquery.ScalarQueryParameter("product_id", "STRING", product_id),
        ])
        return rows[0] if rows else None

    def find_product(self, slug: str, name: str) -> Optional[Row]:
        query = f"""
        SELECT *
        FROM `{config.PRODUCTS_TABLE}`
        WHERE product_slug = @slug
           OR LOWER(name) LIKE @name_pattern
           OR LOWER(affiliate_link) LIKE @slug_pattern
        ORDER BY product_slug = @slug DESC, LOWER(name) = @name DESC, created_at DESC
        LIMIT 1
        """
        normalized = normalize_product_name(name)
        rows = self._query(query, [
            bigquery.ScalarQueryParameter("slug", "STRING", slug),
            bigquery.ScalarQueryParameter("name", "STRING", normalized),
            bigquery.ScalarQueryParameter("name_pattern", "STRING", f"%{normalized}%"),
            bigquery.ScalarQueryParameter("slug_pattern", "STRING", f"%{slug.lower()}%"),
        ])
        return rows[0] if rows else None

    def get_reviews(self, product_id: str) -> List[Row]:
        query = f"""
        SELECT id, product_id, review_text, rating, author_name, source, created_at
        FROM `{config.REVIEWS_TABLE}`
        WHERE product_id = @product_id
        ORDER BY created_at DESC
        """
        return self._query(query, [
            bigquery.ScalarQueryParameter("product_id", "STRING", product_id),
        ])

    def search_products(self, name: str, limit: int) -> List[Row]:
        query = f"""
        SELECT *
        FROM `{config.PRODUCTS_TABLE}`
        WHERE LOWER(name) LIKE @name_pattern
        ORDER BY created_at DESC
        LIMIT @limit
        """
        return self._query(query, [
            bigquery.ScalarQueryParameter("name_pattern", "STRING", f"%{normalize_product_name(name)}%"),
            bigquery.ScalarQueryParameter("limit", "INT64", limit),
        ])

    def list_products(self, limit: int) -> List[Row]:
        query = f"""
        SELECT *
        FROM `{config.PRODUCTS_TABLE}`
        ORDER BY created_at DESC
        LIMIT @limit
        """
        return self._query(query, [
            bigquery.ScalarQueryParameter("limit", "INT64", limit),
        ])

    def similar_products(self, category: str, exclude_id: str, limit: int) -> List[Row]:
        query = f"""
        SELECT *
        FROM `{config.PRODUCTS_TABLE}`
        WHERE category = @category AND id != @exclude_id
        LIMIT @limit
        """
        return self._query(query, [
            bigquery.ScalarQueryParameter("category", "STRING", category),
            bigquery.ScalarQueryParameter("exclude_id", "STRING", exclude_id),
            bigquery.ScalarQueryParameter("limit", "INT64", limit),
        ])

    def latest_reviews(self, limit: int) -> List[Row]:
        query = f"""
        SELECT id, product_name, rating, review_text, image_url, source, created_at
        FROM `{config.MY_REVIEWS_TABLE}`
        ORDER BY created_at DESC
        LIMIT @limit
        """
        return self._query(query, [
            bigquery.ScalarQueryParameter("limit", "INT64", limit),
        ])


class InMemoryProductStore(ProductStore):
    """
    Catalog held in memory, seeded from a JSON document of the form
    {"products": [...], "reviews": [...], "my_reviews": [...]}.

    Products may also carry their reviews inline under "reviews".
    """

    def __init__(self, products: List[Row], reviews: Optional[List[Row]] = None,
                 my_reviews: Optional[List[Row]] = None):
        self.products = []
        self.reviews = list(reviews or [])
        for product in products:
            product = dict(product)
            for review in product.pop("reviews", None) or []:
                self.reviews.append({**review, "product_id": product["id"]})
            self.products.append(product)
        self.my_reviews = list(my_reviews or [])

    @classmethod
    def from_json(cls, path: str) -> "InMemoryProductStore":
        with open(Path(path), encoding="utf-8") as f:
            data = json.load(f)
        logger.info(f"Loaded {len(data.get('products', []))} products from {path}")
        return cls(data.get("products", []), data.get("reviews"), data.get("my_reviews"))

    @staticmethod
    def _recent_first(rows: List[Row]) -> List[Row]:
        return sorted(rows, key=lambda r: r.get("created_at") or "", reverse=True)

    def get_product(self, product_id: str) -> Optional[Row]:
        for product in self.products:
            if str(product.get("id")) == product_id:
                return dict(product)
        return None

    def find_product(self, slug: str, name: str) -> Optional[Row]:
        normalized = normalize_product_name(name)
        lowered_slug = slug.lower()
        matches = [
            p for p in self.products
            if p.get("product_slug") == slug
            or normalized in normalize_product_name(p.get("name", ""))
            or lowered_slug in (p.get("affiliate_link") or "").lower()
        ]
        if not matches:
            return None
        matches = self._recent_first(matches)
        matches.sort(key=lambda p: (
            p.get("product_slug") != slug,
            normalize_product_name(p.get("name", "")) != normalized,
        ))
        return dict(matches[0])

    def get_reviews(self, product_id: str) -> List[Row]:
        return self._recent_first([r for r in self.reviews if str(r.get("product_id")) == product_id])

    def search_products(self, name: str, limit: int) -> List[Row]:
        normalized = normalize_product_name(name)
        matches = [p for p in self.products if normalized in normalize_product_name(p.get("name", ""))]
        return [dict(p) for p in self._recent_first(matches)[:limit]]

    def list_products(self, limit: int) -> List[Row]:
        return [dict(p) for p in self._recent_first(self.products)[:limit]]

    def similar_products(self, category: str, exclude_id: str, limit: int) -> List[Row]:
        matches = [
            p for p in self.products
            if p.get("category") == category and str(p.get("id")) != exclude_id
        ]
        return [dict(p) for p in matches[:limit]]

    def latest_reviews(self, limit: int) -> List[Row]:
        return [dict(r) for r in self._recent_first(self.my_reviews)[:limit]]


def create_store() -> ProductStore:
    if config.PRODUCT_STORE == "memory":
        return InMemoryProductStore.from_json(config.PRODUCTS_JSON_PATH)
    return BigQueryProductStore()

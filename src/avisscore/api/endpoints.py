import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from avisscore import config
from avisscore.api.dependencies import get_analyzer, get_enricher, get_store
from avisscore.core.analyzer import ProductAnalyzer
from avisscore.core.comparator import build_comparison
from avisscore.core.enrichment import SummaryEnricher
from avisscore.core.pipeline import load_product_view
from avisscore.core.presentation import build_detail_view, related_card
from avisscore.core.resolver import (fetch_community_extracts, fetch_latest_reviews,
                                     fetch_similar_products, fetch_unique_product_names,
                                     search_products)
from avisscore.core.store import ProductStore
from avisscore.core.view_state import NOT_FOUND
from avisscore.models.schemas import AnalyzeRequest, ConsentRequest

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _cors_json(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        'service': 'avisscore',
        'status': 'healthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'product_store': config.PRODUCT_STORE,
    }


@router.api_route("/api/analyze",
                  methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
async def analyze_product(request: Request, analyzer: ProductAnalyzer = Depends(get_analyzer)):
    """
    Summary proxy: keeps the AI credential on the server.

    200 with the analysis (or the canned analysis on internal failure),
    400 without productName, 405 for other methods, 500 without credential.
    """
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    if request.method != "POST":
        return _cors_json({"error": "Method Not Allowed"}, status_code=405)

    try:
        body = await request.json()
    except ValueError:
        body = {}
    try:
        payload = AnalyzeRequest.model_validate(body if isinstance(body, dict) else {})
    except ValidationError as e:
        logger.error(f"Invalid analyze request: {e}")
        payload = AnalyzeRequest()

    product_name = (payload.productName or "").strip()
    if not product_name:
        return _cors_json({"error": "Product name is required"}, status_code=400)

    if not analyzer.configured:
        logger.error("OpenAI API key not configured")
        return _cors_json({"error": "AI configuration missing"}, status_code=500)

    result = await run_in_threadpool(analyzer.analyze, product_name, payload.reviewsText)
    return _cors_json(result)


@router.get("/api/products/search")
def search_products_route(q: str = "", limit: int = 5, store: ProductStore = Depends(get_store)):
    return {"items": [related_card(p) for p in search_products(store, q, limit=limit)]}


@router.get("/api/products/names")
def product_names_route(store: ProductStore = Depends(get_store)):
    return {"names": fetch_unique_product_names(store)}


@router.get("/api/products/{target}")
def product_detail_route(target: str, by_id: bool = False,
                         store: ProductStore = Depends(get_store),
                         enricher: SummaryEnricher = Depends(get_enricher)):
    state = load_product_view(store, enricher, target, by_id=by_id)
    if state.status == NOT_FOUND or state.product is None:
        raise HTTPException(status_code=404, detail=f'Product "{target}" not found')

    related = fetch_similar_products(store, state.product)
    return build_detail_view(state.product, state.summary, related)


@router.get("/api/reviews/latest")
def latest_reviews_route(limit: int = 12, store: ProductStore = Depends(get_store)):
    return {"reviews": [r.model_dump() for r in fetch_latest_reviews(store, limit)]}


@router.get("/api/reviews/community")
def community_reviews_route(limit: int = 4, store: ProductStore = Depends(get_store)):
    return {"reviews": fetch_community_extracts(store, limit)}


@router.get("/api/compare")
def compare_route(ids: str = "", store: ProductStore = Depends(get_store)):
    product_ids = [i.strip() for i in ids.split(",") if i.strip()]
    return build_comparison(store, product_ids)


@router.get("/api/consent")
def read_consent(request: Request):
    value: Optional[str] = request.cookies.get(config.CONSENT_COOKIE)
    return {"accepted": None if value is None else value == "true"}


@router.post("/api/consent")
def store_consent(consent: ConsentRequest, response: Response):
    response.set_cookie(config.CONSENT_COOKIE, "true" if consent.accepted else "false",
                        samesite="lax")
    return {"accepted": consent.accepted}

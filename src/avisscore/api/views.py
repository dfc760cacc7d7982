from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from avisscore.api.dependencies import get_enricher, get_store, templates
from avisscore.core.comparator import build_comparison
from avisscore.core.display import first_image, normalize_image_url, to_score10
from avisscore.core.enrichment import SummaryEnricher
from avisscore.core.pipeline import load_product_view
from avisscore.core.presentation import build_detail_view, build_not_found_view, related_card
from avisscore.core.resolver import (fetch_community_extracts, fetch_home_products,
                                     fetch_latest_reviews, fetch_similar_products)
from avisscore.core.store import ProductStore
from avisscore.core.view_state import NOT_FOUND

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
def home(request: Request, store: ProductStore = Depends(get_store)):
    latest = [
        {
            "product_name": r.product_name,
            "image_url": normalize_image_url(first_image(r.image_url)),
            "score": to_score10(r.rating),
        }
        for r in fetch_latest_reviews(store, 6)
    ]
    return templates.TemplateResponse(request, "home.html", {
        "products": [related_card(p) for p in fetch_home_products(store)],
        "latest": latest,
        "extracts": fetch_community_extracts(store),
    })


@router.get("/search")
def search(q: str = ""):
    q = q.strip()
    if not q:
        return RedirectResponse("/", status_code=303)
    return RedirectResponse(f"/product/{quote(q, safe='')}", status_code=303)


@router.get("/product/{target}", response_class=HTMLResponse)
def product_page(request: Request, target: str, by_id: bool = False,
                 store: ProductStore = Depends(get_store),
                 enricher: SummaryEnricher = Depends(get_enricher)):
    state = load_product_view(store, enricher, target, by_id=by_id)
    if state.status == NOT_FOUND or state.product is None:
        return templates.TemplateResponse(request, "not_found.html",
                                          build_not_found_view(target), status_code=404)

    related = fetch_similar_products(store, state.product)
    return templates.TemplateResponse(request, "detail.html", {
        "view": build_detail_view(state.product, state.summary, related),
    })


@router.get("/compare", response_class=HTMLResponse)
def compare_page(request: Request, ids: str = "", store: ProductStore = Depends(get_store)):
    product_ids = [i.strip() for i in ids.split(",") if i.strip()]
    return templates.TemplateResponse(request, "compare.html", {
        "comparison": build_comparison(store, product_ids),
    })

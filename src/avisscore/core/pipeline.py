import logging
from typing import Optional

from avisscore.core.enrichment import SummaryEnricher
from avisscore.core.resolver import resolve_product
from avisscore.core.store import ProductStore
from avisscore.core.view_state import (ProductNotFound, ProductResolved, SummaryReady,
                                       ViewState, ViewStore)

logger = logging.getLogger(__name__)


def load_product_view(store: ProductStore, enricher: SummaryEnricher, target: str,
                      by_id: bool = False, view_store: Optional[ViewStore] = None) -> ViewState:
    """
    Resolve a product, enrich it and publish each step to the view store.

    Returns the store's state once this request has finished. If a newer
    request was started on the same store in the meantime, that newer state
    is returned and this request's results are dropped.
    """
    view_store = view_store or ViewStore()
    request_id = view_store.begin(target)

    product = resolve_product(store, target, by_id=by_id)
    if product is None:
        view_store.dispatch(ProductNotFound(request_id))
        return view_store.state

    view_store.dispatch(ProductResolved(request_id, product))
    summary = enricher.enrich(product)
    view_store.dispatch(SummaryReady(request_id, summary))
    return view_store.state

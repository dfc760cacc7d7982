"""
Page state for the product view.

Every transition goes through `reduce`. Actions carry the id of the request
that produced them, and only the current request may change the state, so a
slow response from an earlier search is dropped instead of overwriting the
newer view.
"""
import logging
import threading
from dataclasses import dataclass, replace
from typing import Optional, Union

from avisscore.models.schemas import Product, ProductSummary

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADING = "loading"
ENRICHING = "enriching"
READY = "ready"
NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ViewState:
    request_id: int = 0
    status: str = IDLE
    query: str = ""
    product: Optional[Product] = None
    summary: Optional[ProductSummary] = None


@dataclass(frozen=True)
class SearchStarted:
    request_id: int
    query: str


@dataclass(frozen=True)
class ProductResolved:
    request_id: int
    product: Product


@dataclass(frozen=True)
class ProductNotFound:
    request_id: int


@dataclass(frozen=True)
class SummaryReady:
    request_id: int
    summary: ProductSummary


Action = Union[SearchStarted, ProductResolved, ProductNotFound, SummaryReady]


def reduce(state: ViewState, action: Action) -> ViewState:
    if isinstance(action, SearchStarted):
        if action.request_id <= state.request_id:
            return state
        return ViewState(request_id=action.request_id, status=LOADING, query=action.query)

    if action.request_id != state.request_id:
        return state

    if isinstance(action, ProductResolved):
        return replace(state, status=ENRICHING, product=action.product, summary=None)
    if isinstance(action, ProductNotFound):
        return replace(state, status=NOT_FOUND, product=None, summary=None)
    if isinstance(action, SummaryReady):
        if state.product is None:
            return state
        return replace(state, status=READY, summary=action.summary)
    return state


class ViewStore:
    """Thread-safe holder of the current ViewState"""

    def __init__(self, state: Optional[ViewState] = None):
        self._state = state or ViewState()
        self._next_id = self._state.request_id
        self._lock = threading.Lock()

    @property
    def state(self) -> ViewState:
        return self._state

    def begin(self, query: str) -> int:
        """Start a new search and return its request id"""
        with self._lock:
            self._next_id += 1
            request_id = self._next_id
        self.dispatch(SearchStarted(request_id, query))
        return request_id

    def dispatch(self, action: Action) -> bool:
        """Apply an action; returns False when it was discarded as stale"""
        with self._lock:
            new_state = reduce(self._state, action)
            applied = new_state is not self._state
            self._state = new_state
        if not applied:
            logger.info(f"Discarded stale {type(action).__name__} for request {action.request_id}")
        return applied

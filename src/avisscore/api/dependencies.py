from functools import lru_cache

from fastapi.templating import Jinja2Templates

from avisscore import config
from avisscore.core.analyzer import ProductAnalyzer
from avisscore.core.enrichment import SummaryEnricher
from avisscore.core.store import ProductStore, create_store

templates = Jinja2Templates(directory=str(config.TEMPLATES_DIR))


@lru_cache
def get_store() -> ProductStore:
    return create_store()


def get_analyzer() -> ProductAnalyzer:
    return ProductAnalyzer()


def get_enricher() -> SummaryEnricher:
    return SummaryEnricher()

import json
from types import SimpleNamespace

import pytest
import requests

from avisscore.core.store import InMemoryProductStore

IPHONE_REVIEWS = [
    {"id": "r1", "review_text": "Excellent appareil photo et très fluide.", "rating": 5,
     "author_name": "Camille", "source": "Fnac", "created_at": "2025-01-12T08:00:00"},
    {"id": "r2", "review_text": "Autonomie correcte, charge un peu lente.", "rating": 4,
     "author_name": "Louis", "source": "Darty", "created_at": "2025-01-13T08:00:00"},
    {"id": "r3", "review_text": "Cher mais bien fini.", "rating": 8,
     "author_name": "Inès", "source": "Amazon", "created_at": "2025-01-14T08:00:00"},
]

MODEL_ANALYSIS = {
    "score": 88,
    "description": "Un smartphone équilibré et bien fini.",
    "pros": ["Capteur 48MP", "Port USB-C", "Dynamic Island"],
    "cons": ["Charge 20W trop lente", "Écran 60Hz"],
    "predecessorName": "iPhone 14",
    "activeLifespanYears": 6,
    "marketAlternatives": [{"name": "Pixel 8", "price": "699 €"}],
    "buyerTip": "Attendez les soldes.",
    "oneWordVerdict": "Solide",
}


def build_catalog():
    return {
        "products": [
            {
                "id": "p1",
                "name": "iPhone 15",
                "product_slug": "iphone-15",
                "description": "Le smartphone d'Apple.",
                "category": "Smartphones",
                "image_url": "https://m.media-amazon.com/images/I/iphone15.webp",
                "current_price": 799,
                "reference_price": 969,
                "rating": 4.6,
                "score": 8.7,
                "fiche_technique": ["Écran: 6,1 pouces OLED", "Processeur: A16 Bionic", "Garantie"],
                "faq": json.dumps([{"q": "USB-C ?", "a": "Oui."}]),
                "fnac_price": 809,
                "fnac_rev": "Très bon téléphone.",
                "created_at": "2025-01-10T10:00:00",
                "reviews": IPHONE_REVIEWS,
            },
            {
                "id": "p2",
                "name": "iPhone 15 Pro",
                "product_slug": "iphone-15-pro",
                "description": "La version Pro.",
                "category": "Smartphones",
                "image_url": ["https://cdn.example.com/iphone15pro.png"],
                "current_price": 100,
                "reference_price": 250,
                "score": 9.1,
                "created_at": "2025-02-01T10:00:00",
            },
            {
                "id": "p3",
                "name": "Galaxy Buds",
                "product_slug": "galaxy-buds",
                "description": "",
                "category": "Audio",
                "image_url": "",
                "score": 7.2,
                "analysis": {"score": 7.5, "points_forts": ["Son riche"], "conseil_achat": "Prenez la version Pro."},
                "review_text": ["Un son riche et une réduction de bruit efficace pour le prix demandé."],
                "created_at": "2025-01-05T10:00:00",
            },
        ],
        "my_reviews": [
            {"id": 1, "product_name": "iPhone 15", "rating": 5, "review_text": "Top.",
             "image_url": "", "created_at": "2025-01-14T08:00:00"},
            {"id": 2, "product_name": "Galaxy Buds", "rating": 4, "review_text": "Bien.",
             "image_url": "", "created_at": "2025-01-15T08:00:00"},
            {"id": 3, "product_name": "iPhone 15", "rating": 3, "review_text": "Moyen.",
             "image_url": "", "created_at": "2025-01-11T08:00:00"},
        ],
    }


class FakeAnalyzeClient:
    """Stands in for the HTTP client of the summary proxy"""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else dict(MODEL_ANALYSIS)
        self.error = error
        self.calls = []

    def analyze(self, product_name, reviews_text=None):
        self.calls.append((product_name, reviews_text))
        if self.error is not None:
            raise self.error
        return self.response


class FakeOpenAI:
    """Minimal chat.completions surface of the OpenAI client"""

    def __init__(self, content=None, error=None):
        self.content = content if content is not None else json.dumps(MODEL_ANALYSIS)
        self.error = error
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class BrokenStore(InMemoryProductStore):
    """Store whose backend is unreachable"""

    def __init__(self):
        super().__init__([])

    def _fail(self, *args, **kwargs):
        raise ConnectionError("backend unreachable")

    get_product = find_product = get_reviews = _fail
    search_products = list_products = similar_products = latest_reviews = _fail


@pytest.fixture
def catalog():
    return build_catalog()


@pytest.fixture
def store(catalog):
    return InMemoryProductStore(catalog["products"], my_reviews=catalog["my_reviews"])


@pytest.fixture
def analyze_client():
    return FakeAnalyzeClient()


@pytest.fixture
def failing_analyze_client():
    return FakeAnalyzeClient(error=requests.ConnectionError("connection refused"))

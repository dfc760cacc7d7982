import pytest
import requests
from conftest import FakeAnalyzeClient
from fastapi.testclient import TestClient

from avisscore.api.dependencies import get_enricher, get_store
from avisscore.core.enrichment import SummaryEnricher
from avisscore.core.store import InMemoryProductStore
from avisscore.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def overrides(store):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_enricher] = lambda: SummaryEnricher(client=FakeAnalyzeClient())
    yield
    app.dependency_overrides.clear()


def test_home_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "Galaxy Buds" in response.text
    assert 'href="/product/iphone-15-pro"' in response.text
    assert 'action="/search"' in response.text


def test_search_redirects_to_product_page():
    response = client.get("/search", params={"q": "iPhone 15"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/product/iPhone%2015"

    response = client.get("/search", params={"q": "  "}, follow_redirects=False)
    assert response.headers["location"] == "/"


def test_product_page_renders_summary_and_json_ld():
    response = client.get("/product/iPhone 15")
    assert response.status_code == 200
    assert "Capteur 48MP" in response.text
    assert "application/ld+json" in response.text
    assert "fa-microchip" in response.text
    assert "8.8/10" in response.text


def test_product_page_not_found():
    response = client.get("/product/doesnotexist123")
    assert response.status_code == 404
    assert "Produit Introuvable" in response.text
    assert 'href="/"' in response.text

    home = client.get("/")
    assert home.status_code == 200


def test_product_page_renders_when_ai_unreachable():
    app.dependency_overrides[get_enricher] = lambda: SummaryEnricher(
        client=FakeAnalyzeClient(error=requests.ConnectionError("down")))
    response = client.get("/product/iPhone 15")
    assert response.status_code == 200
    assert "Bon rapport qualité/prix" in response.text


def test_product_page_price_error_marker():
    response = client.get("/product/p2", params={"by_id": "true"})
    assert response.status_code == 200
    assert "price-error" in response.text


def test_compare_page():
    response = client.get("/compare", params={"ids": "p1,p2"})
    assert response.status_code == 200
    assert 'class="best"' in response.text
    assert "A16 Bionic" in response.text


def test_product_page_escapes_catalogue_markup():
    evil_store = InMemoryProductStore([
        {"id": "x1", "name": "Evil</script><script>alert(1)</script>", "description": "Test"},
    ])
    app.dependency_overrides[get_store] = lambda: evil_store
    response = client.get("/product/x1", params={"by_id": "true"})
    assert response.status_code == 200
    assert "<script>alert(1)</script>" not in response.text
    assert "\\u003c/script\\u003e" in response.text


def test_search_redirect_quotes_slashes():
    response = client.get("/search", params={"q": "AirPods 2/3"}, follow_redirects=False)
    assert response.headers["location"] == "/product/AirPods%202%2F3"

"""
Summary enrichment: product + reviews -> ProductSummary.

The enricher calls the summary proxy once. It builds a local fallback
summary when the product has no reviews or when the proxy cannot be
reached. The proxy's own canned analysis (see analyzer.CANNED_ANALYSIS)
covers the other failure class, a reachable model returning unusable
content, and is mapped here like any other analysis.
"""
import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from avisscore import config
from avisscore.core.display import (clamp_score10, first_image, normalize_image_url,
                                    sentiment_for)
from avisscore.core.resolver import truncate_extract
from avisscore.models.schemas import AIAnalysis, Product, ProductSummary

logger = logging.getLogger(__name__)

# 4.2/5 expressed on the canonical 0-10 scale
DEFAULT_FALLBACK_SCORE10 = 8.4
MAX_REVIEW_FRAGMENTS = 3

FALLBACK_STRENGTHS = [
    "Bon rapport qualité/prix",
    "Finition soignée",
    "Performances solides au quotidien",
    "Prise en main intuitive",
]
FALLBACK_WEAKNESSES = [
    "Prix de lancement élevé",
    "Accessoires limités dans la boîte",
    "Autonomie perfectible",
]
FALLBACK_SPECS = [
    "Garantie: 2 ans",
    "Disponibilité: En stock chez nos marchands partenaires",
    "État: Neuf",
]
FALLBACK_LIFECYCLE = [
    "Lancement : prix élevé, forte demande",
    "Maturité : baisse de prix progressive et promotions",
    "Fin de cycle : remplacement par le modèle suivant",
]


class AnalyzeClient:
    """HTTP client for the summary proxy (POST /api/analyze)"""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.url = url or config.ANALYZE_API_URL
        self.timeout = timeout or config.ANALYZE_TIMEOUT
        self.session = session or requests.Session()

    def analyze(self, product_name: str, reviews_text: Optional[str] = None) -> Dict[str, Any]:
        payload = {"productName": product_name}
        if reviews_text:
            payload["reviewsText"] = reviews_text

        response = self.session.post(self.url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()


def review_fragments(product: Product, limit: int = MAX_REVIEW_FRAGMENTS) -> List[str]:
    texts = [r.review_text.strip() for r in product.reviews if r.review_text and r.review_text.strip()]
    return [truncate_extract(t) for t in texts[:limit]]


def _seo_fields(product: Product, description: str) -> Dict[str, str]:
    return {
        "seo_title": product.seo_title or f"{product.name} : avis, test et prix",
        "seo_description": product.seo_description or description
        or f"Découvrez notre analyse complète de {product.name}.",
    }


def build_fallback_summary(product: Product) -> ProductSummary:
    """Deterministic summary built from the product's own fields"""
    if product.analysis and product.analysis.score is not None:
        rating = clamp_score10(product.analysis.score)
    else:
        rating = DEFAULT_FALLBACK_SCORE10

    strengths = product.points_forts or (product.analysis.points_forts if product.analysis else [])
    weaknesses = product.points_faibles or (product.analysis.points_faibles if product.analysis else [])
    description = product.description or (product.analysis.description if product.analysis else "")

    return ProductSummary(
        rating=rating,
        sentiment=sentiment_for(rating),
        review_text=review_fragments(product),
        points_forts=strengths or list(FALLBACK_STRENGTHS),
        points_faibles=weaknesses or list(FALLBACK_WEAKNESSES),
        fiche_technique=product.fiche_technique or list(FALLBACK_SPECS),
        cycle_de_vie=product.cycle_de_vie or list(FALLBACK_LIFECYCLE),
        alternative=product.alternative or "",
        image_url=normalize_image_url(first_image(product.image_url)),
        description=description,
        buyer_tip=(product.analysis.conseil_achat or "") if product.analysis else "",
        source="fallback",
        **_seo_fields(product, description),
    )


def summary_from_analysis(product: Product, analysis: AIAnalysis) -> ProductSummary:
    """Map the model's 0-100 analysis onto a 0-10 ProductSummary"""
    rating = clamp_score10(analysis.score / 10)

    lifecycle = [
        f"Modèle précédent : {analysis.predecessor_name}",
        f"Durée de vie active estimée : {analysis.active_lifespan_years:g} ans",
    ]
    alternative = ""
    if analysis.market_alternatives:
        alt = analysis.market_alternatives[0]
        alternative = f"{alt.name} - {alt.price}" if alt.price else alt.name

    return ProductSummary(
        rating=rating,
        sentiment=analysis.one_word_verdict or sentiment_for(rating),
        review_text=review_fragments(product),
        points_forts=list(analysis.pros),
        points_faibles=list(analysis.cons),
        fiche_technique=product.fiche_technique,
        cycle_de_vie=lifecycle,
        alternative=alternative or product.alternative or "",
        image_url=normalize_image_url(first_image(product.image_url)),
        description=analysis.description,
        buyer_tip=analysis.buyer_tip,
        source="ai",
        **_seo_fields(product, analysis.description),
    )


class SummaryEnricher:

    def __init__(self, client: Optional[AnalyzeClient] = None):
        self.client = client or AnalyzeClient()

    def enrich(self, product: Product) -> ProductSummary:
        """
        Produce the summary shown on the detail view. Never raises and never
        returns None; the AI endpoint is called at most once.
        """
        if not product.reviews:
            logger.info(f"No reviews for {product.name}, using fallback summary")
            return build_fallback_summary(product)

        reviews_text = "\n".join(r.review_text for r in product.reviews if r.review_text)
        try:
            payload = self.client.analyze(product.name, reviews_text)
            analysis = AIAnalysis.model_validate(payload)
        except requests.RequestException as e:
            logger.error(f"Error calling summary API for {product.name}: {e}")
            return build_fallback_summary(product)
        except (ValueError, ValidationError) as e:
            logger.error(f"Unusable summary API response for {product.name}: {e}")
            return build_fallback_summary(product)

        logger.info(f"AI summary ready for {product.name}")
        return summary_from_analysis(product, analysis)

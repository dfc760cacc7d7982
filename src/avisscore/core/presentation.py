"""
Presentation merge: product + summary -> view model bound to the templates.
"""
import math
from typing import Any, Dict, List, Optional

from jinja2.utils import htmlsafe_json_dumps

from avisscore.core.display import (discount_percent, first_image, format_score10,
                                    is_price_error, normalize_image_url, parse_faq,
                                    pick_spec_icon, split_spec_line, to_score10)
from avisscore.models.schemas import FAQItem, Product, ProductSummary

MAX_RELATED = 3

MERCHANTS = [
    ("Fnac", "fnac_price", "fnac_rev"),
    ("Darty", "darty_price", "darty_rev"),
    ("Boulanger", "boulanger_price", None),
    ("Amazon", "amazon_price", "amazon_rev"),
    ("Rakuten", None, "rakuten_rev"),
]


def spec_rows(lines: List[str]) -> List[Dict[str, str]]:
    rows = []
    for line in lines:
        label, value = split_spec_line(line)
        rows.append({"label": label, "value": value, "icon": pick_spec_icon(label)})
    return rows


def default_faqs(product: Product, score: str) -> List[FAQItem]:
    quality = "excellent" if float(score) > 7 else "moyen"
    return [
        FAQItem(
            question=f"Quelle est la note de {product.name} ?",
            answer=f"L'IA Avisscore lui attribue une note de {score}/10 basée sur "
                   f"l'analyse de {len(product.reviews)} avis.",
        ),
        FAQItem(
            question=f"{product.name} est-il un bon choix ?",
            answer=f"Avec un score de {score}/10, ce produit est considéré comme "
                   f"{quality} par notre algorithme.",
        ),
        FAQItem(
            question=f"Où trouver le meilleur prix pour {product.name} ?",
            answer="Nous analysons plusieurs marchands pour vous offrir la meilleure "
                   "comparaison en temps réel sur Avisscore.",
        ),
    ]


def merchant_offers(product: Product) -> List[Dict[str, Any]]:
    """Merchant prices and merchant reviews scraped into the product row"""
    offers = []
    for merchant, price_field, review_field in MERCHANTS:
        price = getattr(product, price_field) if price_field else None
        review = getattr(product, review_field) if review_field else None
        if price is None and not review:
            continue
        offers.append({"merchant": merchant, "price": price, "review": review})
    return offers


def price_block(product: Product) -> Dict[str, Any]:
    current = product.current_price if product.current_price is not None else product.price
    reference = product.reference_price
    return {
        "current_price": current,
        "reference_price": reference,
        "discount": round(discount_percent(current, reference)),
        "price_error": is_price_error(current, reference),
    }


def product_json_ld(product: Product, summary: ProductSummary, score: str) -> Dict[str, Any]:
    return {
        "@context": "https://schema.org/",
        "@type": "Product",
        "name": product.name,
        "image": summary.image_url,
        "description": product.seo_description or summary.seo_description or product.description,
        "brand": {"@type": "Brand", "name": product.category or "Avisscore"},
        "aggregateRating": {
            "@type": "AggregateRating",
            "ratingValue": score,
            "bestRating": "10",
            "worstRating": "1",
            "reviewCount": str(len(product.reviews)),
        },
    }


def faq_json_ld(faqs: List[FAQItem]) -> Dict[str, Any]:
    return {
        "@context": "https://schema.org",
        "@type": "FAQPage",
        "mainEntity": [
            {
                "@type": "Question",
                "name": faq.question,
                "acceptedAnswer": {"@type": "Answer", "text": faq.answer},
            }
            for faq in faqs
        ],
    }


def _json_ld(data: Dict[str, Any]) -> str:
    # Escapes <, >, & and ' so the payload cannot close its <script> block
    return str(htmlsafe_json_dumps(data, ensure_ascii=False))


def related_card(product: Product) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.product_slug or product.id,
        "image_url": normalize_image_url(first_image(product.image_url)),
        "score": to_score10(product.score if product.score is not None else product.rating),
    }


def build_detail_view(product: Product, summary: ProductSummary,
                      related: Optional[List[Product]] = None) -> Dict[str, Any]:
    """Everything the detail template binds to; `summary` is never None here"""
    score = format_score10(summary.rating)
    faqs = parse_faq(product.faq) or default_faqs(product, score)

    return {
        "id": product.id,
        "name": product.name,
        "category": product.category,
        "description": summary.description or product.description,
        "image_url": summary.image_url,
        "affiliate_link": product.affiliate_link,
        "score": score,
        "stars": math.floor(summary.rating / 2),
        "sentiment": summary.sentiment,
        "summary_source": summary.source,
        "points_forts": summary.points_forts,
        "points_faibles": summary.points_faibles,
        "specs": spec_rows(summary.fiche_technique),
        "cycle_de_vie": summary.cycle_de_vie,
        "alternative": summary.alternative,
        "buyer_tip": summary.buyer_tip,
        "review_extracts": summary.review_text,
        "reviews": [
            {
                "author_name": review.author_name,
                "rating": to_score10(review.rating),
                "review_text": review.review_text,
                "source": review.source,
                "created_at": review.created_at,
            }
            for review in product.reviews
        ],
        "offers": merchant_offers(product),
        "price": price_block(product),
        "faqs": [faq.model_dump() for faq in faqs],
        "seo_title": summary.seo_title,
        "seo_description": summary.seo_description,
        "json_ld": [
            _json_ld(product_json_ld(product, summary, score)),
            _json_ld(faq_json_ld(faqs)),
        ],
        "related": [
            related_card(p) for p in (related or []) if p.id != product.id
        ][:MAX_RELATED],
    }


def build_not_found_view(query: str) -> Dict[str, Any]:
    return {
        "title": "Produit Introuvable",
        "query": query,
        "message": "L'analyse ou la page que vous recherchez n'existe pas ou a été déplacée.",
        "home_url": "/",
        "home_label": "Retour à l'accueil",
    }

"""
Display normalizers shared by every view.

All functions here are pure: they take raw store/AI values and return the
shape the templates expect.
"""
import json
import logging
import re
from functools import singledispatch
from typing import Any, List, Optional, Tuple

from avisscore.models.schemas import FAQItem

logger = logging.getLogger(__name__)

DEFAULT_SCORE10 = "8.5"

PLACEHOLDER_IMAGE = "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=800&q=80"
LOSSY_IMAGE_HOST = "m.media-amazon.com"
LOSSY_EXTENSION = ".webp"
COMPATIBLE_EXTENSION = ".jpg"

SPEC_LABEL_PLACEHOLDER = "Info"
SPEC_VALUE_PLACEHOLDER = "—"

PRICE_ERROR_THRESHOLD = 50.0

DEFAULT_SPEC_ICON = "fa-gear"
# Checked in order, first match wins
SPEC_ICONS = [
    ("fa-mobile-screen-button", [r"écran", r"ecran", r"screen", r"display"]),
    ("fa-microchip", [r"processeur", r"cpu", r"chip", r"puce", r"processor"]),
    ("fa-hard-drive", [r"stockage", r"ssd", r"disk", r"disque", r"storage"]),
    ("fa-memory", [r"\bram\b", r"mémoire", r"memoire", r"memory"]),
    ("fa-battery-full", [r"batterie", r"battery", r"autonomie"]),
    ("fa-camera", [r"caméra", r"camera", r"photo", r"capteur"]),
    ("fa-weight-hanging", [r"poids", r"weight", r"masse"]),
]


def clamp_score10(value: float) -> float:
    return max(0.0, min(10.0, float(value)))


def to_score10(rating: Optional[float]) -> str:
    """
    Render a raw rating on the 0-10 display scale.

    Ratings above 5 are taken as already being out of 10, anything else is
    read as a 0-5 star rating and doubled. A missing rating renders "8.5".
    """
    if rating is None:
        return DEFAULT_SCORE10
    value = float(rating)
    if value <= 5:
        value = value * 2
    return f"{clamp_score10(value):.1f}"


def format_score10(score: float) -> str:
    """Format a score that is already on the 0-10 scale"""
    return f"{clamp_score10(score):.1f}"


def sentiment_for(score10: float) -> str:
    if score10 >= 7:
        return "Positif"
    if score10 >= 5:
        return "Mitigé"
    return "Négatif"


def normalize_image_url(url: Optional[str]) -> str:
    """Return a displayable image URL for a product"""
    if not url or not url.strip():
        return PLACEHOLDER_IMAGE
    if LOSSY_IMAGE_HOST in url and LOSSY_EXTENSION in url:
        idx = url.rfind(LOSSY_EXTENSION)
        return url[:idx] + COMPATIBLE_EXTENSION + url[idx + len(LOSSY_EXTENSION):]
    return url


def first_image(value: Any) -> Optional[str]:
    """Pick the first URL out of a list or a JSON-encoded list"""
    if isinstance(value, list):
        return value[0] if value else None
    if isinstance(value, str) and value.strip().startswith("["):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return value
        if isinstance(parsed, list):
            return parsed[0] if parsed else None
    return value


def split_spec_line(line: Any) -> Tuple[str, str]:
    """Split a "Label: Value" spec line on its first colon"""
    parts = str(line).split(":", 1)
    label = parts[0].strip() or SPEC_LABEL_PLACEHOLDER
    value = parts[1].strip() if len(parts) > 1 else ""
    return label, value or SPEC_VALUE_PLACEHOLDER


def pick_spec_icon(label: str) -> str:
    key = str(label).lower()
    for icon, patterns in SPEC_ICONS:
        if any(re.search(pattern, key) for pattern in patterns):
            return icon
    return DEFAULT_SPEC_ICON


def parse_specs(value: Any) -> List[str]:
    """Spec lists come as arrays, JSON strings or a single plain string"""
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return [value] if value.strip() else []
        if isinstance(parsed, list):
            return [str(v) for v in parsed]
        return [value]
    return []


def discount_percent(current_price: Optional[float], reference_price: Optional[float]) -> float:
    if current_price is None or not reference_price or reference_price <= 0:
        return 0.0
    return (reference_price - current_price) / reference_price * 100


def is_price_error(current_price: Optional[float], reference_price: Optional[float]) -> bool:
    """
    Flag a deal that looks too good to be true.

    This is a display heuristic only: a discount of 50% or more on a
    positive current price.
    """
    if current_price is None or current_price <= 0:
        return False
    return discount_percent(current_price, reference_price) >= PRICE_ERROR_THRESHOLD


# FAQ column: string (JSON) | object | array


@singledispatch
def parse_faq(raw: Any) -> List[FAQItem]:
    if raw is not None:
        logger.warning(f"Unsupported FAQ payload type: {type(raw).__name__}")
    return []


@parse_faq.register
def _(raw: str) -> List[FAQItem]:
    if not raw.strip():
        return []
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing product faq: {e}")
        return []
    if isinstance(decoded, str):
        return []
    return parse_faq(decoded)


@parse_faq.register
def _(raw: dict) -> List[FAQItem]:
    return [_faq_item(raw)]


@parse_faq.register
def _(raw: list) -> List[FAQItem]:
    return [_faq_item(item) for item in raw if isinstance(item, dict)]


def _faq_text(item: dict, keys: Tuple[str, ...], default: str) -> str:
    # Numbers are kept as text, nested objects are dropped
    for key in keys:
        value = item.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value
    return default


def _faq_item(item: dict) -> FAQItem:
    return FAQItem(
        question=_faq_text(item, ("question", "q"), "Question sans titre"),
        answer=_faq_text(item, ("answer", "a"), "Réponse non disponible"),
    )

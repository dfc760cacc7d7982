from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Review(BaseModel):
    """A merchant or community review attached to a product"""

    id: str
    product_id: Optional[str] = None
    review_text: str = ""
    rating: Optional[float] = None
    author_name: str = "Avis vérifié"
    source: Optional[str] = None
    created_at: Optional[str] = None
    product_name: Optional[str] = None
    image_url: Optional[str] = None


class Analysis(BaseModel):
    """Expert analysis stored alongside a product (score on a 0-10 scale)"""

    id: Optional[str] = None
    product_id: Optional[str] = None
    score: Optional[float] = None
    description: str = ""
    points_forts: List[str] = Field(default_factory=list)
    points_faibles: List[str] = Field(default_factory=list)
    conseil_achat: Optional[str] = None
    duree_vie_estimee: Optional[float] = None
    version_precedente: Optional[str] = None


class FAQItem(BaseModel):
    question: str
    answer: str


class Product(BaseModel):
    """Catalog item as stored in the `products` table"""

    id: str
    name: str
    description: str = ""
    image_url: Union[str, List[str], None] = None
    price: Optional[float] = None
    current_price: Optional[float] = None
    reference_price: Optional[float] = None
    affiliate_link: Optional[str] = None
    category: Optional[str] = None
    product_slug: Optional[str] = None
    created_at: Optional[str] = None
    rating: Optional[float] = None
    score: Optional[float] = None
    specs: Optional[Any] = None
    fiche_technique: List[str] = Field(default_factory=list)
    points_forts: List[str] = Field(default_factory=list)
    points_faibles: List[str] = Field(default_factory=list)
    cycle_de_vie: List[str] = Field(default_factory=list)
    alternative: Optional[str] = None
    reviews: List[Review] = Field(default_factory=list)
    analysis: Optional[Analysis] = None
    # string, object or array; see display.parse_faq
    faq: Optional[Any] = None

    # Merchant reviews
    fnac_rev: Optional[str] = None
    darty_rev: Optional[str] = None
    boulanger_rev: Optional[str] = None
    rakuten_rev: Optional[str] = None
    amazon_rev: Optional[str] = None
    # Merchant prices
    fnac_price: Optional[float] = None
    darty_price: Optional[float] = None
    amazon_price: Optional[float] = None
    boulanger_price: Optional[float] = None

    seo_title: Optional[str] = None
    seo_description: Optional[str] = None


class MarketAlternative(BaseModel):
    name: str
    price: str = ""


class AIAnalysis(BaseModel):
    """Structured answer expected from the generative model"""

    model_config = ConfigDict(populate_by_name=True)

    score: float
    description: str
    pros: List[str]
    cons: List[str]
    predecessor_name: str = Field(alias="predecessorName")
    active_lifespan_years: float = Field(alias="activeLifespanYears")
    market_alternatives: List[MarketAlternative] = Field(alias="marketAlternatives")
    buyer_tip: str = Field(alias="buyerTip")
    verdict: Optional[str] = None
    one_word_verdict: Optional[str] = Field(default=None, alias="oneWordVerdict")


class AnalyzeRequest(BaseModel):
    """Request body of the summary proxy; productName is checked by the route"""

    productName: Optional[str] = None
    reviewsText: Optional[str] = None


class ProductSummary(BaseModel):
    """Per-view verdict; `rating` is always on a 0-10 scale"""

    model_config = ConfigDict(frozen=True)

    rating: float
    sentiment: str
    review_text: List[str] = Field(default_factory=list)
    points_forts: List[str] = Field(default_factory=list)
    points_faibles: List[str] = Field(default_factory=list)
    fiche_technique: List[str] = Field(default_factory=list)
    cycle_de_vie: List[str] = Field(default_factory=list)
    alternative: str = ""
    image_url: str = ""
    seo_title: str = ""
    seo_description: str = ""
    description: str = ""
    buyer_tip: str = ""
    source: Literal["ai", "fallback"] = "ai"


class ConsentRequest(BaseModel):
    accepted: bool

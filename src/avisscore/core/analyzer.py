"""
Server side of the summary proxy.

Holds the AI credential and turns (product name, review texts) into an
AIAnalysis document. The model is asked once; whatever goes wrong after the
credential check, the caller gets the canned analysis instead.
"""
import copy
import json
import logging
from typing import Any, Dict, Optional

import openai
from pydantic import ValidationError

from avisscore import config
from avisscore.models.schemas import AIAnalysis

logger = logging.getLogger(__name__)

WORLD_KNOWLEDGE_INSTRUCTION = "Utilise tes connaissances techniques à jour"

# Returned with a 200 when the model output cannot be used
CANNED_ANALYSIS: Dict[str, Any] = {
    "score": 85,
    "description": "Analyse technique standard.",
    "pros": ["Fiabilité", "Interface fluide", "Écran OLED", "Charge rapide", "Qualité photo", "Design"],
    "cons": ["Prix élevé", "Pas de chargeur", "Poids", "Chauffe", "Audio moyen", "Stockage"],
    "predecessorName": "Modèle précédent",
    "activeLifespanYears": 4,
    "verdict": "Produit recommandé",
    "buyerTip": "Attendez une promotion pour maximiser le rapport qualité/prix.",
    "marketAlternatives": [],
}

SYSTEM_PROMPT = """Tu es l'expert technique principal d'AvisScore.
Ton analyse doit être basée sur une logique rigoureuse :
1. VALEUR RÉSIDUELLE : calcule les années restantes de vie utile réelle (support logiciel + matériel correct).
   - Si le produit est sorti il y a plus de 3 ans, la valeur est faible (1-2 ans).
   - Si c'est un haut de gamme récent, c'est 5-7 ans.
2. POINTS FORTS/FAIBLES : des caractéristiques techniques réelles (ex: "Capteur 200MP", "Charge 15W trop lente").
3. ALTERNATIVES : de vrais concurrents directs au même prix ou légèrement moins chers.
4. SCORE : sur 100, sévère mais juste. Un mauvais rapport qualité/prix ne dépasse pas 80.

Réponds UNIQUEMENT avec un objet JSON de la forme :
{
  "score": number,
  "description": "string",
  "pros": ["string"],
  "cons": ["string"],
  "predecessorName": "string",
  "activeLifespanYears": number,
  "marketAlternatives": [{"name": "string", "price": "string"}],
  "buyerTip": "string",
  "verdict": "string",
  "oneWordVerdict": "string"
}"""


class AnalyzerNotConfigured(RuntimeError):
    """Raised when no AI credential is available"""


def build_prompt(product_name: str, reviews_text: Optional[str]) -> str:
    return f"""Analyse le produit : "{product_name}".
Avis contextuels : "{reviews_text or WORLD_KNOWLEDGE_INSTRUCTION}".
Génère une analyse complète."""


def parse_analysis(response_text: str) -> AIAnalysis:
    """Parse and validate the model output, raising on any contract violation"""
    text = (response_text or "").strip()
    # Remove any markdown formatting if present
    if text.startswith('```json'):
        text = text.replace('```json', '').replace('```', '').strip()
    elif text.startswith('```'):
        text = text.replace('```', '').strip()
    return AIAnalysis.model_validate(json.loads(text))


class ProductAnalyzer:

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 client: Optional[Any] = None):
        self.api_key = api_key if api_key is not None else config.OPENAI_API_KEY
        self.model = model or config.OPENAI_MODEL
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise AnalyzerNotConfigured("AI configuration missing")
            self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    def analyze(self, product_name: str, reviews_text: Optional[str] = None) -> Dict[str, Any]:
        """
        Ask the model for a structured analysis of a product.

        Args:
            product_name: Display name of the product
            reviews_text: Concatenated review texts; when empty the model is
                told to rely on its own knowledge

        Returns:
            The AIAnalysis as a JSON-ready dict (camelCase keys), or the
            canned analysis when the call or the validation fails
        """
        client = self.client
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(product_name, reviews_text)},
                ],
                response_format={"type": "json_object"},
                temperature=config.OPENAI_TEMPERATURE,
            )
            analysis = parse_analysis(response.choices[0].message.content)
            logger.info(f"Generated analysis for {product_name} (score {analysis.score})")
            return analysis.model_dump(by_alias=True, exclude_none=True)

        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Invalid AI response for {product_name}: {e}")
        except openai.OpenAIError as e:
            logger.error(f"AI Server Error for {product_name}: {e}")
        except Exception as e:
            logger.error(f"Unexpected error analyzing {product_name}: {e}")
        return copy.deepcopy(CANNED_ANALYSIS)

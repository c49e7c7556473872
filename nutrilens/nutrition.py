"""Nutritionix lookup for a vision guess, with placeholder macros as fallback."""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import requests

from nutrilens.config import PipelineConfig
from nutrilens.models import NutritionQuery, NutritionResult, ParsedFoodGuess
from nutrilens.utils import to_number

logger = logging.getLogger(__name__)

# Rough per-meal placeholder used whenever Nutritionix gives nothing usable
FALLBACK_NUTRITION = NutritionResult(calories=400, protein=20, carbs=45, fat=15)


@lru_cache
def get_session() -> requests.Session:
    """Process-wide session so Nutritionix connections are pooled."""
    logger.info("Initializing Nutritionix HTTP session")
    return requests.Session()


def build_nutrition_query(guess: ParsedFoodGuess) -> NutritionQuery:
    return NutritionQuery(text=f"{guess.portion_desc} {guess.food_name}")


def fallback_nutrition() -> NutritionResult:
    return FALLBACK_NUTRITION


def normalize_food(food: Dict[str, Any]) -> NutritionResult:
    """Map one Nutritionix ``foods[]`` item onto NutritionResult."""
    unit = food.get("serving_unit")
    return NutritionResult(
        calories=to_number(food.get("nf_calories")),
        protein=to_number(food.get("nf_protein")),
        carbs=to_number(food.get("nf_total_carbohydrate")),
        fat=to_number(food.get("nf_total_fat")),
        serving_qty=to_number(food.get("serving_qty")),
        serving_unit=unit if isinstance(unit, str) else None,
    )


class NutritionClient:
    """
    Natural-language nutrient lookup.

    ``lookup`` returns None (no data) when credentials are missing, the call
    fails, or nothing matched. The caller decides what to do instead.
    """

    def __init__(self, config: PipelineConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or get_session()

    def lookup(self, query: NutritionQuery) -> Optional[NutritionResult]:
        if not self.config.has_nutrition_credentials:
            logger.info("Nutritionix credentials not set, skipping lookup")
            return None

        logger.info("Nutritionix lookup: query=%r", query.text)
        try:
            resp = self.session.post(
                self.config.nutrition_url,
                headers={
                    "x-app-id": self.config.nutrition_app_id,
                    "x-app-key": self.config.nutrition_app_key,
                    "Content-Type": "application/json",
                },
                json={"query": query.text, "timezone": "UTC"},
            )
        except requests.RequestException as e:
            logger.warning("Nutritionix request failed: %s", e)
            return None

        if not resp.ok:
            logger.warning("Nutritionix lookup failed: status=%s body=%s", resp.status_code, resp.text)
            return None

        try:
            data = resp.json()
        except ValueError as e:
            logger.warning("Nutritionix returned invalid JSON: %s", e)
            return None

        foods = data.get("foods") if isinstance(data, dict) else None
        if not isinstance(foods, list) or not foods or not isinstance(foods[0], dict):
            logger.warning("Nutritionix found no foods for query=%r", query.text)
            return None

        result = normalize_food(foods[0])
        logger.info("Nutritionix result: %s", result)
        return result

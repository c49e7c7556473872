"""Food photo -> nutrition estimate pipeline."""

import datetime as dt
import logging
import time
from typing import Optional

from nutrilens.models import ImageInput, NutritionPayload
from nutrilens.nutrition import NutritionClient, build_nutrition_query, fallback_nutrition
from nutrilens.utils import parse_food_guess
from nutrilens.vision import VisionClient, extract_response_text

logger = logging.getLogger(__name__)


def _ms(start: float) -> float:
    return round((time.time() - start) * 1000, 2)


def analyze_food_image(
    image: ImageInput,
    vision_client: VisionClient,
    nutrition_client: NutritionClient,
    today: Optional[dt.date] = None,
) -> NutritionPayload:
    """
    Identify the food in ``image`` and attach macros to it.

    Only a vision failure (VisionProviderError) escapes; unparseable vision
    text and a missing nutrition match both fall back to defaults.
    """
    total_start = time.time()

    # STEP 1: VISION RECOGNITION
    vision_start = time.time()
    logger.info("[PIPELINE] Step 1: Starting vision recognition (%s bytes)", len(image.data))
    raw = vision_client.analyze(image)
    vision_text = extract_response_text(raw)
    guess = parse_food_guess(vision_text)
    logger.info(
        "[PIPELINE] Step 1: Vision completed in %sms, guess=%s",
        _ms(vision_start),
        guess,
    )

    # STEP 2: NUTRITION LOOKUP
    nutrition_start = time.time()
    query = build_nutrition_query(guess)
    logger.info("[PIPELINE] Step 2: Starting nutrition lookup for %r", query.text)
    nutrition = nutrition_client.lookup(query)
    if nutrition is None:
        logger.warning("[PIPELINE] Step 2: No nutrition data, using placeholder macros")
        nutrition = fallback_nutrition()
    logger.info("[PIPELINE] Step 2: Nutrition completed in %sms", _ms(nutrition_start))

    payload = NutritionPayload(
        food_name=guess.food_name,
        confidence=guess.confidence,
        calories=nutrition.calories,
        protein=nutrition.protein,
        carbs=nutrition.carbs,
        fat=nutrition.fat,
        category=guess.category,
        image_url=None,
        date=today or dt.datetime.now(dt.timezone.utc).date(),
        raw_vision=vision_text,
    )
    logger.info("[PIPELINE] completed successfully, total time: %sms", _ms(total_start))
    return payload

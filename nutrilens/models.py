"""Request-scoped records passed between pipeline stages."""

import base64
import datetime as dt
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict

DEFAULT_FOOD_NAME = "Unknown"
DEFAULT_CONFIDENCE = 60
DEFAULT_PORTION = "1 serving"
DEFAULT_CATEGORY = "main_course"


@dataclass(frozen=True)
class ImageInput:
    data: bytes
    content_type: str = "image/jpeg"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")

    def to_data_url(self) -> str:
        return f"data:{self.content_type};base64,{self.to_base64()}"


@dataclass(frozen=True)
class ParsedFoodGuess:
    food_name: str = DEFAULT_FOOD_NAME
    confidence: float = DEFAULT_CONFIDENCE
    portion_desc: str = DEFAULT_PORTION
    category: str = DEFAULT_CATEGORY


@dataclass(frozen=True)
class NutritionQuery:
    text: str


@dataclass(frozen=True)
class NutritionResult:
    """Macros for one matched food. ``None`` stands for an unknown value."""

    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    serving_qty: Optional[float] = None
    serving_unit: Optional[str] = None


class NutritionPayload(BaseModel):
    """Final response body of ``POST /analyze``."""

    model_config = ConfigDict(allow_inf_nan=False)

    food_name: str
    confidence: float
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    category: str
    image_url: Optional[str] = None
    date: dt.date
    raw_vision: str

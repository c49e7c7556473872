import os
from dataclasses import dataclass
from typing import Optional


def _parse_cors_origins(raw: str) -> list[str]:
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


def _optional(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


CORS_ORIGINS = _parse_cors_origins(os.getenv("CORS_ORIGINS", "*"))
ALLOW_ALL_ORIGINS = CORS_ORIGINS == ["*"]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -----------------------------------
# Vision provider (OpenAI Responses API)
# -----------------------------------

# VISION_MODEL: any vision-capable model served by the Responses API
DEFAULT_VISION_MODEL = "gpt-4o-mini"

# -----------------------------------
# Nutrition provider (Nutritionix natural-language endpoint)
# -----------------------------------

DEFAULT_NUTRITIONIX_URL = "https://trackapi.nutritionix.com/v2/natural/nutrients"

# -----------------------------------
# Inbound limits
# -----------------------------------

# MAX_IMAGE_BYTES: uploads above this size are rejected with 400
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class PipelineConfig:
    """Credentials and endpoints handed to the vision and nutrition clients.

    Only ``vision_api_key`` is required for a request to succeed; missing
    Nutritionix credentials switch the nutrition stage to placeholder macros.
    """

    vision_api_key: Optional[str] = None
    vision_model: str = DEFAULT_VISION_MODEL
    nutrition_app_id: Optional[str] = None
    nutrition_app_key: Optional[str] = None
    nutrition_url: str = DEFAULT_NUTRITIONIX_URL
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES

    @property
    def has_nutrition_credentials(self) -> bool:
        return bool(self.nutrition_app_id and self.nutrition_app_key)


def load_config() -> PipelineConfig:
    """Read the pipeline configuration from the environment."""
    return PipelineConfig(
        vision_api_key=_optional("OPENAI_API_KEY"),
        vision_model=_optional("VISION_MODEL") or DEFAULT_VISION_MODEL,
        nutrition_app_id=_optional("NUTRITIONIX_APP_ID"),
        nutrition_app_key=_optional("NUTRITIONIX_APP_KEY"),
        nutrition_url=(_optional("NUTRITIONIX_URL") or DEFAULT_NUTRITIONIX_URL).rstrip("/"),
        max_image_bytes=int(os.getenv("MAX_IMAGE_BYTES", str(DEFAULT_MAX_IMAGE_BYTES))),
    )

"""Single-call OpenAI vision service for food identification."""

import json
import logging
from typing import Any, Dict, Optional

import openai

from nutrilens.config import PipelineConfig
from nutrilens.errors import VisionProviderError
from nutrilens.models import ImageInput
from nutrilens.openai_client import get_openai_client
from nutrilens.prompts import VISION_PROMPT

logger = logging.getLogger(__name__)


class VisionClient:
    """
    Sends one photo plus the fixed identification prompt to the Responses API.

    The raw response comes back as a plain dict; its shape is not trusted
    here, see ``extract_response_text``.
    """

    def __init__(self, config: PipelineConfig, client: Optional[Any] = None):
        self.config = config
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = get_openai_client(self.config.vision_api_key)
        return self._client

    def analyze(self, image: ImageInput) -> Dict[str, Any]:
        if not self.config.vision_api_key:
            raise VisionProviderError("Missing OpenAI key in env", "OPENAI_API_KEY is not set")

        data_url = image.to_data_url()
        logger.info(
            "Sending %.1fkb image (%s) to model=%s",
            len(data_url) / 1024,
            image.content_type,
            self.config.vision_model,
        )

        try:
            response = self._get_client().responses.create(
                model=self.config.vision_model,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "input_text", "text": VISION_PROMPT},
                            {"type": "input_image", "image_url": data_url},
                        ],
                    }
                ],
            )
        except openai.APIStatusError as e:
            logger.error("OpenAI vision error: status=%s body=%s", e.status_code, e.response.text)
            raise VisionProviderError("OpenAI vision error", e.response.text) from e
        except openai.OpenAIError as e:
            logger.error("OpenAI vision call failed: %s", e)
            raise VisionProviderError("OpenAI vision error", str(e)) from e

        return _as_dict(response)


def _as_dict(raw: Any) -> Any:
    if hasattr(raw, "model_dump"):
        return raw.model_dump()
    return raw


def _first(items: Any) -> Any:
    if isinstance(items, list) and items:
        return items[0]
    return None


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def _text_from_output(raw: Dict[str, Any]) -> Optional[str]:
    first = _first(raw.get("output"))
    if not isinstance(first, dict) or _first(first.get("content")) is None:
        return None

    pieces = []
    for part in first["content"]:
        text = part.get("text") if isinstance(part, dict) else None
        pieces.append(text if isinstance(text, str) and text else _stringify(part))
    return " ".join(pieces)


def _text_from_choices(raw: Dict[str, Any]) -> Optional[str]:
    first = _first(raw.get("choices"))
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if isinstance(content, str) and content:
        return content
    return None


def extract_response_text(raw: Any) -> str:
    """
    Locate the model's text in a vision response of unknown shape.

    Tries, in order:
    1) Responses API ``output[0].content[*].text``
    2) chat-style ``choices[0].message.content``
    3) the whole response serialized as JSON
    """
    raw = _as_dict(raw)
    if isinstance(raw, dict):
        for strategy in (_text_from_output, _text_from_choices):
            text = strategy(raw)
            if text is not None:
                return text

    logger.warning("Vision response has no known text root, using serialized response")
    return _stringify(raw)

import logging
from functools import lru_cache

from openai import OpenAI

logger = logging.getLogger(__name__)


@lru_cache
def get_openai_client(api_key: str) -> OpenAI:
    logger.info("Initializing OpenAI client")
    # One round trip per request: the SDK's built-in retries are disabled.
    return OpenAI(api_key=api_key, max_retries=0)

import json

import pytest

from nutrilens.config import PipelineConfig


class FakeResponses:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.result


class FakeOpenAI:
    """Stands in for openai.OpenAI: only ``responses.create`` is used."""

    def __init__(self, result=None, error=None):
        self.responses = FakeResponses(result, error)


class FakeHTTPResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def responses_api_result(text):
    return {
        "id": "resp_123",
        "object": "response",
        "output": [
            {
                "type": "message",
                "role": "assistant",
                "content": [{"type": "output_text", "text": text, "annotations": []}],
            }
        ],
    }


def nutritionix_food(**overrides):
    food = {
        "food_name": "pizza",
        "serving_qty": 2,
        "serving_unit": "slice",
        "nf_calories": 570.2,
        "nf_protein": 24.4,
        "nf_total_carbohydrate": 71.1,
        "nf_total_fat": 20.8,
    }
    food.update(overrides)
    return food


@pytest.fixture
def full_config():
    return PipelineConfig(
        vision_api_key="sk-test",
        nutrition_app_id="app-id",
        nutrition_app_key="app-key",
    )


@pytest.fixture
def vision_only_config():
    return PipelineConfig(vision_api_key="sk-test")

import json

import httpx
import openai
import pytest

from nutrilens.config import PipelineConfig
from nutrilens.errors import VisionProviderError
from nutrilens.models import ImageInput
from nutrilens.openai_client import get_openai_client
from nutrilens.prompts import VISION_PROMPT
from nutrilens.vision import VisionClient, extract_response_text

from conftest import FakeOpenAI, responses_api_result

IMAGE = ImageInput(data=b"\xff\xd8\xff\xe0fake-jpeg", content_type="image/jpeg")


# ---------- extract_response_text ----------

def test_extract_from_output_list():
    raw = {
        "output": [
            {
                "content": [
                    {"type": "output_text", "text": '{"food_name": "Pizza",'},
                    {"type": "output_text", "text": '"confidence": 85}'},
                ]
            }
        ]
    }
    assert extract_response_text(raw) == '{"food_name": "Pizza", "confidence": 85}'


def test_extract_stringifies_parts_without_text():
    raw = {"output": [{"content": [{"type": "refusal", "refusal": "no"}]}]}
    text = extract_response_text(raw)
    assert json.loads(text) == {"type": "refusal", "refusal": "no"}


def test_extract_from_choices():
    raw = {"choices": [{"message": {"role": "assistant", "content": "Sushi"}}]}
    assert extract_response_text(raw) == "Sushi"


def test_output_wins_over_choices():
    raw = {
        "output": [{"content": [{"text": "from output"}]}],
        "choices": [{"message": {"content": "from choices"}}],
    }
    assert extract_response_text(raw) == "from output"


def test_unknown_shape_is_serialized():
    raw = {"result": {"label": "taco"}}
    text = extract_response_text(raw)
    assert text
    assert json.loads(text) == raw


def test_malformed_shapes_never_raise():
    for raw in [
        {},
        {"output": []},
        {"output": [{"content": []}]},
        {"output": ["nope"]},
        {"choices": []},
        {"choices": [{"message": {"content": None}}]},
        {"choices": [{"message": "text"}]},
        None,
        "plain text",
        [1, 2, 3],
    ]:
        assert isinstance(extract_response_text(raw), str)


def test_extract_accepts_sdk_objects():
    class Dumpable:
        def model_dump(self):
            return {"choices": [{"message": {"content": "Ramen"}}]}

    assert extract_response_text(Dumpable()) == "Ramen"


# ---------- VisionClient ----------

def test_analyze_sends_prompt_and_inline_image(vision_only_config):
    fake = FakeOpenAI(result=responses_api_result('{"food_name": "Pizza"}'))
    client = VisionClient(vision_only_config, client=fake)

    raw = client.analyze(IMAGE)

    assert raw["output"][0]["content"][0]["text"] == '{"food_name": "Pizza"}'
    call = fake.responses.calls[0]
    assert call["model"] == "gpt-4o-mini"
    turn = call["input"][0]
    assert turn["role"] == "user"
    text_part, image_part = turn["content"]
    assert text_part == {"type": "input_text", "text": VISION_PROMPT}
    assert image_part["type"] == "input_image"
    assert image_part["image_url"] == IMAGE.to_data_url()
    assert image_part["image_url"].startswith("data:image/jpeg;base64,")


def test_prompt_asks_for_expected_keys():
    for key in ("food_name", "confidence", "portion_desc"):
        assert key in VISION_PROMPT


def test_missing_key_fails_before_any_call():
    fake = FakeOpenAI(result={})
    client = VisionClient(PipelineConfig(vision_api_key=None), client=fake)

    with pytest.raises(VisionProviderError) as exc_info:
        client.analyze(IMAGE)

    assert exc_info.value.status_code == 500
    assert fake.responses.calls == []


def test_non_success_status_becomes_provider_error(vision_only_config):
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    response = httpx.Response(401, request=request, text='{"error": {"message": "bad key"}}')
    error = openai.AuthenticationError("bad key", response=response, body=None)
    client = VisionClient(vision_only_config, client=FakeOpenAI(error=error))

    with pytest.raises(VisionProviderError) as exc_info:
        client.analyze(IMAGE)

    assert exc_info.value.error == "OpenAI vision error"
    assert "bad key" in exc_info.value.details


def test_connection_error_becomes_provider_error(vision_only_config):
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    error = openai.APIConnectionError(request=request)
    client = VisionClient(vision_only_config, client=FakeOpenAI(error=error))

    with pytest.raises(VisionProviderError):
        client.analyze(IMAGE)


def test_openai_client_is_shared_per_key(vision_only_config):
    first = VisionClient(vision_only_config)._get_client()
    second = VisionClient(vision_only_config)._get_client()
    assert first is second
    assert get_openai_client("sk-other") is not first

import base64
from types import SimpleNamespace

import httpx
import pytest
from openai import APIStatusError

from adapter.processor.florence import LocalImageProvider
from adapter.processor.vision import (
    GoogleImageProvider,
    OpenAIImageProvider,
    parse_image_response,
    to_base64_data_url,
)
from core.exceptions import ApiError, ConfigurationError, GenerationError
from core.settings import IMAGE_DESCRIPTION_PROMPT
from domain.schemas.config import ImageServiceConfig


GEMINI_URL = "https://generativelanguage.googleapis.com/v1/models/gemini-1.5-pro:generateContent"


@pytest.fixture
def config() -> ImageServiceConfig:
    return ImageServiceConfig(openai_api_key="sk-test", google_api_key="g-test")


def test_parse_reply_with_title_and_multiline_description():
    result = parse_image_response("Title\nLine1\nLine2")
    assert result.title == "Title"
    assert result.description == "Line1\nLine2"


def test_parse_reply_without_line_break():
    result = parse_image_response("Just a title")
    assert result.title == "Just a title"
    assert result.description == ""


def test_base64_data_url():
    assert to_base64_data_url(b"abc", "image/png") == "data:image/png;base64,YWJj"


# -----------------
# Google
# -----------------

async def test_google_describe_sends_inline_image(fake_http, config):
    fake_http.add(
        "POST",
        GEMINI_URL,
        json_body={"candidates": [{"content": {"parts": [{"text": "A Cat\nSitting on a mat."}]}}]},
    )
    provider = GoogleImageProvider(config)
    await provider.initialize()

    result = await provider.describe(b"img-bytes", "image/webp")

    assert result.title == "A Cat"
    assert result.description == "Sitting on a mat."
    (call,) = fake_http.calls_to("POST", GEMINI_URL)
    assert call["params"] == {"key": "g-test"}
    parts = call["json"]["contents"][0]["parts"]
    assert parts[0] == {"text": IMAGE_DESCRIPTION_PROMPT}
    assert parts[1]["inline_data"] == {
        "mime_type": "image/webp",
        "data": base64.b64encode(b"img-bytes").decode(),
    }


async def test_google_error_status_raises_api_error(fake_http, config):
    fake_http.add("POST", GEMINI_URL, status=403, body=b"forbidden")
    provider = GoogleImageProvider(config)

    with pytest.raises(ApiError) as exc_info:
        await provider.describe(b"img", "image/png")

    assert exc_info.value.status == 403
    assert exc_info.value.provider == "Google Gemini"
    assert exc_info.value.body == "forbidden"


async def test_google_initialize_requires_key():
    provider = GoogleImageProvider(ImageServiceConfig(google_api_key=""))
    with pytest.raises(ConfigurationError):
        await provider.initialize()


# -----------------
# OpenAI
# -----------------

class FakeCompletions:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _fake_openai(completions: FakeCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


async def test_openai_describe_sends_data_url(config):
    completions = FakeCompletions(reply="Sunset\nOrange sky over the sea.\nTwo boats.")
    provider = OpenAIImageProvider(config)
    provider._client = _fake_openai(completions)

    result = await provider.describe(b"abc", "image/png")

    assert result.title == "Sunset"
    assert result.description == "Orange sky over the sea.\nTwo boats."
    (call,) = completions.calls
    assert call["model"] == "gpt-4o-mini"
    assert call["max_tokens"] == 500
    content = call["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": IMAGE_DESCRIPTION_PROMPT}
    assert content[1]["image_url"]["url"] == "data:image/png;base64,YWJj"


async def test_openai_error_status_raises_api_error(config):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(429, request=request, text="rate limited")
    error = APIStatusError("rate limited", response=response, body=None)
    provider = OpenAIImageProvider(config)
    provider._client = _fake_openai(FakeCompletions(error=error))

    with pytest.raises(ApiError) as exc_info:
        await provider.describe(b"abc", "image/png")

    assert exc_info.value.status == 429
    assert exc_info.value.provider == "OpenAI"


async def test_openai_initialize_requires_key():
    provider = OpenAIImageProvider(ImageServiceConfig(openai_api_key=""))
    with pytest.raises(ConfigurationError):
        await provider.initialize()


# -----------------
# Local (Florence-2)
# -----------------

class FakeInputs(dict):
    def to(self, *args, **kwargs):
        return self


class FakeProcessor:
    def __init__(self):
        self.post_processed = []

    def __call__(self, text, images, return_tensors):
        return FakeInputs(input_ids=[[1, 2]], pixel_values=[[0.0]])

    def post_process_generation(self, text, task, image_size):
        self.post_processed.append((text, task, image_size))
        return {task: " A red square on a plain background. "}


class FakeModel:
    def __init__(self):
        self.kwargs = None

    def generate(self, **kwargs):
        self.kwargs = kwargs
        return [[0, 5, 6, 2]]


class FakeTokenizer:
    def batch_decode(self, ids, skip_special_tokens):
        assert skip_special_tokens is False
        return ["</s><s>A red square on a plain background.</s>"]


async def test_local_describe_requires_initialize(config, png_bytes):
    provider = LocalImageProvider(config)
    with pytest.raises(GenerationError):
        await provider.describe(png_bytes, "image/png")


async def test_local_describe_uses_caption_for_title_and_description(config, png_bytes):
    provider = LocalImageProvider(config)
    provider.model = FakeModel()
    provider.processor = FakeProcessor()
    provider.tokenizer = FakeTokenizer()

    result = await provider.describe(png_bytes, "image/png")

    assert result.title == "A red square on a plain background."
    assert result.description == result.title
    assert provider.model.kwargs["max_new_tokens"] == 256
    assert provider.processor.post_processed[0][1] == "<DETAILED_CAPTION>"
    assert provider.processor.post_processed[0][2] == (8, 8)


async def test_local_generation_failure_raises_generation_error(config, png_bytes):
    provider = LocalImageProvider(config)
    provider.model = FakeModel()
    provider.processor = FakeProcessor()
    provider.tokenizer = FakeTokenizer()

    def _boom(**kwargs):
        raise RuntimeError("CUDA out of memory")

    provider.model.generate = _boom

    with pytest.raises(GenerationError):
        await provider.describe(png_bytes, "image/png")


async def test_local_initialize_is_idempotent(config):
    provider = LocalImageProvider(config)
    loads = []
    provider._load_sync = lambda: (loads.append(1), setattr(provider, "model", FakeModel()))

    await provider.initialize()
    await provider.initialize()

    assert loads == [1]

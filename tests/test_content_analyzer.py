"""Tests for the OpenAI-backed content analyzer."""

import base64
import json
from types import SimpleNamespace

import pytest

from services.openai.analysis_schema import FUNCTION_NAME
from services.openai.content_analyzer import FALLBACK_SUMMARY, ContentAnalyzer
from services.openai.media_inputs import build_file_content


class FakeResponses:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.response


def function_call_response(arguments, name=FUNCTION_NAME):
    return SimpleNamespace(
        output=[SimpleNamespace(type="function_call", name=name, arguments=arguments)],
        usage=SimpleNamespace(input_tokens=120, output_tokens=30),
    )


def make_client(response=None, error=None):
    return SimpleNamespace(responses=FakeResponses(response=response, error=error))


PAYLOAD = base64.b64encode(b"hello world").decode("ascii")


@pytest.mark.asyncio
async def test_analyze_returns_summary_and_tags():
    client = make_client(function_call_response(json.dumps({"summary": "A greeting.", "tags": ["hello", "text"]})))
    analyzer = ContentAnalyzer(client, model="gpt-test")

    result = await analyzer.analyze(PAYLOAD, "text/plain", "a.txt")

    assert result == {"summary": "A greeting.", "tags": ["hello", "text"]}
    sent = client.responses.kwargs
    assert sent["model"] == "gpt-test"
    assert sent["tool_choice"] == {"type": "function", "name": FUNCTION_NAME}
    assert sent["tools"][0]["parameters"]["required"] == ["summary", "tags"]


@pytest.mark.asyncio
async def test_analyze_accepts_data_url_payload():
    client = make_client(function_call_response(json.dumps({"summary": "s", "tags": []})))
    await ContentAnalyzer(client).analyze(f"data:text/plain;base64,{PAYLOAD}", "text/plain", "a.txt")
    user_content = client.responses.kwargs["input"][1]["content"]
    assert user_content[0]["text"].endswith("hello world")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        function_call_response("not json"),
        function_call_response(json.dumps({"summary": "s"})),
        function_call_response(json.dumps({"summary": "s", "tags": [1, 2]})),
        function_call_response(json.dumps({"summary": 5, "tags": []})),
        function_call_response(json.dumps({"summary": "s", "tags": []}), name="other_tool"),
        SimpleNamespace(output=[], usage=None),
    ],
)
async def test_invalid_output_falls_back(response):
    result = await ContentAnalyzer(make_client(response)).analyze(PAYLOAD, "text/plain", "a.txt")
    assert result == {"summary": FALLBACK_SUMMARY, "tags": ["untagged"]}


@pytest.mark.asyncio
async def test_transport_error_falls_back():
    client = make_client(error=ConnectionError("network down"))
    result = await ContentAnalyzer(client).analyze(PAYLOAD, "image/png", "x.png")
    assert result == {"summary": FALLBACK_SUMMARY, "tags": ["untagged"]}


def test_analyzer_requires_client():
    with pytest.raises(ValueError):
        ContentAnalyzer(None)


def test_file_content_by_kind():
    image = build_file_content(PAYLOAD, "image/png", "x.png")
    assert image == {"type": "input_image", "image_url": f"data:image/png;base64,{PAYLOAD}"}

    pdf = build_file_content(PAYLOAD, "application/pdf", "doc.pdf")
    assert pdf["type"] == "input_file"
    assert pdf["filename"] == "doc.pdf"
    assert pdf["file_data"].startswith("data:application/pdf;base64,")

    text = build_file_content(PAYLOAD, "", "notes.md")
    assert text["type"] == "input_text"
    assert "hello world" in text["text"]

"""Tests for the chat-completion entity extractor.

HTTP traffic goes through httpx.MockTransport, so no network is used.
"""

import json

import httpx
import pytest

from tokspan.config import ExtractionConfig
from tokspan.entity import EntityCandidate
from tokspan.errors import ExtractionError
from tokspan.pipeline.chat_extractor import (
    ChatCompletionEntityExtractor,
    candidates_from_payload,
    parse_json_from_text,
)

CONFIG = ExtractionConfig(
    api_key="secret",
    base_url="https://llm.example.test/v1/chat/completions",
    model="base-model",
    entity_extraction_model="extract-model",
)


def chat_reply(content) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def make_extractor(handler, **kwargs) -> ChatCompletionEntityExtractor:
    return ChatCompletionEntityExtractor(CONFIG, transport=httpx.MockTransport(handler), **kwargs)


class TestParseJsonFromText:
    def test_plain_object(self) -> None:
        assert parse_json_from_text('{"entities": []}') == {"entities": []}

    def test_code_fence_is_removed(self) -> None:
        text = '```json\n{"entities": [{"text": "a", "label": "b"}]}\n```'

        assert parse_json_from_text(text) == {"entities": [{"text": "a", "label": "b"}]}

    def test_surrounding_text_and_braces_in_strings(self) -> None:
        text = 'Here you go: {"entities": [{"text": "a}b", "label": "x"}]} hope it helps'

        assert parse_json_from_text(text)["entities"][0]["text"] == "a}b"

    @pytest.mark.parametrize("text", ["no json here", '{"entities": [', ""])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_json_from_text(text)


class TestCandidatesFromPayload:
    def test_malformed_items_are_dropped(self) -> None:
        payload = {
            "entities": [
                {"text": "东城-一网格", "label": "状态判断", "description": "grid"},
                {"text": "", "label": "x"},
                {"text": "no label"},
                "not an object",
                {"text": "ok", "label": " person ", "description": 3},
            ]
        }

        assert candidates_from_payload(payload) == [
            EntityCandidate(text="东城-一网格", label="状态判断", description="grid"),
            EntityCandidate(text="ok", label="person", description=None),
        ]

    def test_missing_entities_list(self) -> None:
        with pytest.raises(ValueError):
            candidates_from_payload({"items": []})


class TestChatCompletionEntityExtractor:
    async def test_request_and_response(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            body = {"entities": [{"text": "Bob", "label": "person", "description": "a man"}]}
            return httpx.Response(200, json=chat_reply(json.dumps(body)))

        candidates = await make_extractor(handler).extract("Alice met Bob.")

        assert candidates == [EntityCandidate(text="Bob", label="person", description="a man")]
        [request] = seen
        assert str(request.url) == CONFIG.base_url
        assert request.headers["Authorization"] == "Bearer secret"
        payload = json.loads(request.content)
        assert payload["model"] == "extract-model"
        assert payload["messages"][0]["role"] == "user"
        assert payload["messages"][0]["content"].endswith("Alice met Bob.")

    def test_prompt_lists_allowed_labels(self) -> None:
        extractor = make_extractor(lambda r: httpx.Response(200), labels=[("状态判断", "state of the business")])

        prompt = extractor.build_prompt("text")

        assert "状态判断: state of the business" in prompt

    async def test_http_error_raises_extraction_error(self) -> None:
        extractor = make_extractor(lambda r: httpx.Response(500, text="boom"))

        with pytest.raises(ExtractionError):
            await extractor.extract("text")

    async def test_missing_choices_raises_extraction_error(self) -> None:
        extractor = make_extractor(lambda r: httpx.Response(200, json={"choices": []}))

        with pytest.raises(ExtractionError):
            await extractor.extract("text")

    async def test_unparseable_content_raises_extraction_error(self) -> None:
        extractor = make_extractor(lambda r: httpx.Response(200, json=chat_reply("I could not find entities.")))

        with pytest.raises(ExtractionError):
            await extractor.extract("text")

    @pytest.mark.parametrize("content", [None, [{"type": "text", "text": '{"entities": []}'}]])
    async def test_non_text_content_raises_extraction_error(self, content) -> None:
        extractor = make_extractor(lambda r: httpx.Response(200, json=chat_reply(content)))

        with pytest.raises(ExtractionError):
            await extractor.extract("text")

    async def test_non_json_body_raises_extraction_error(self) -> None:
        extractor = make_extractor(lambda r: httpx.Response(200, text="<html>"))

        with pytest.raises(ExtractionError):
            await extractor.extract("text")

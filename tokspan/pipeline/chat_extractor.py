"""Entity extraction through an OpenAI-compatible chat-completions endpoint.

Sends the document text in a single user message asking for a JSON object
``{"entities": [{"text": ..., "label": ..., "description": ...}]}`` and
turns the reply into EntityCandidate objects.
"""

import json
from typing import Any, Sequence

import httpx

from tokspan.config import ExtractionConfig
from tokspan.entity import EntityCandidate
from tokspan.errors import ExtractionError
from tokspan.logging import setup_logging
from tokspan.pipeline.interfaces import EntityExtractorInterface

logger = setup_logging()

PROMPT_TEMPLATE = """You extract named entities from text.
Requirements:
1. Output JSON only. No explanation, no Markdown, no code fences.
2. Follow this structure exactly: {{"entities": [{{"text": "...", "label": "...", "description": "..."}}]}}
3. "text" must be a contiguous piece of the original text, copied without rewording.
4. {label_rule}
5. "description" briefly states what the entity is in this text.
6. Text to process:
{content}"""


def parse_json_from_text(response_text: str) -> dict[str, Any]:
    """Extract and parse the first JSON object in a model reply.

    Tolerates Markdown code fences and text around the object.

    Raises:
        ValueError: If no balanced JSON object is found or it does not parse.
    """
    text = response_text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1]) if len(lines) > 2 else text
    start = text.find("{")
    if start == -1:
        raise ValueError("No JSON object found in response")
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return json.loads(text[start : i + 1])
    raise ValueError("Unbalanced braces in JSON")


def candidates_from_payload(payload: dict[str, Any]) -> list[EntityCandidate]:
    """Convert a parsed ``{"entities": [...]}`` payload to candidates.

    Items that are not objects or lack a non-empty text or label are dropped.
    """
    items = payload.get("entities")
    if not isinstance(items, list):
        raise ValueError("Response has no 'entities' list")
    candidates: list[EntityCandidate] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        text, label = item.get("text"), item.get("label")
        if not isinstance(text, str) or not isinstance(label, str) or not text.strip() or not label.strip():
            logger.debug(f"Dropping malformed candidate {item!r}")
            continue
        description = item.get("description")
        candidates.append(
            EntityCandidate(
                text=text,
                label=label.strip(),
                description=description if isinstance(description, str) else None,
            )
        )
    return candidates


class ChatCompletionEntityExtractor(EntityExtractorInterface):
    """Entity extractor backed by a chat-completions HTTP API.

    Args:
        config: Endpoint, credentials, model and timeout.
        labels: Optional ``(name, description)`` pairs the model must
            choose labels from. When omitted the model picks its own labels.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport``
            in tests.
    """

    def __init__(
        self,
        config: ExtractionConfig,
        labels: Sequence[tuple[str, str]] = (),
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.labels = tuple(labels)
        self._transport = transport

    def build_prompt(self, text: str) -> str:
        if self.labels:
            choices = "\n".join(f"   - {name}: {description}" for name, description in self.labels)
            label_rule = f'"label" must be one of these categories:\n{choices}'
        else:
            label_rule = '"label" is a short category name such as "person", "organization" or "location".'
        return PROMPT_TEMPLATE.format(label_rule=label_rule, content=text)

    def build_request(self, text: str) -> dict[str, Any]:
        return {
            "model": self.config.extraction_model,
            "messages": [{"role": "user", "content": self.build_prompt(text)}],
            "temperature": self.config.temperature,
        }

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def extract(self, text: str) -> list[EntityCandidate]:
        logger.info(f"Requesting entity extraction from {self.config.base_url} with model {self.config.extraction_model}")
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                response = await client.post(self.config.base_url, json=self.build_request(text), headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise ExtractionError(f"Extraction request failed: {e}") from e
        except ValueError as e:
            raise ExtractionError(f"Extraction response is not JSON: {e}") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise ExtractionError("Extraction response has no choices")
        try:
            content = choices[0]["message"]["content"]
            if not isinstance(content, str):
                raise ExtractionError(f"Extraction response has no text content: {content!r}")
            candidates = candidates_from_payload(parse_json_from_text(content))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ExtractionError(f"Could not parse extraction response: {e}") from e
        logger.info(f"Extraction service proposed {len(candidates)} candidates")
        return candidates

"""Extraction service boundary.

The dispatcher only depends on the ``ExtractionClient`` protocol: one call
takes one encoded slice and one credential and returns the service's raw
text response, or raises. ``parse_records`` turns that text into records.
"""

import json
import re
from typing import Any, Protocol

from google import genai
from google.genai import types

from sliceflow.config import DEFAULT_MODEL, DEFAULT_PROMPT
from sliceflow.core import DEFAULT_CATEGORY, ExtractionRecord, SliceChunk


class ExtractionError(RuntimeError):
    """A single extraction attempt failed and may be retried with another key."""


class ExtractionClient(Protocol):
    def extract(self, chunk: SliceChunk, credential: str) -> str: ...


_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw).strip()


def _coerce_record(item: Any) -> ExtractionRecord | None:
    if not isinstance(item, dict):
        return None
    text = item.get("text")
    if text is None:
        text = ""
    elif not isinstance(text, str):
        text = str(text)
    category = item.get("category")
    if not isinstance(category, str) or not category.strip():
        category = DEFAULT_CATEGORY
    return ExtractionRecord(text=text, category=category)


def parse_records(raw: str | None) -> list[ExtractionRecord]:
    """Parse a service response into records.

    Undecodable JSON raises ``ExtractionError`` so the attempt is retried.
    JSON that decodes to something other than a list yields no records,
    and list items that are not objects are skipped.
    """
    payload = strip_code_fences(raw or "")
    if not payload:
        return []
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Response is not valid JSON: {e.msg} at char {e.pos}") from e
    if not isinstance(decoded, list):
        return []
    records = []
    for item in decoded:
        record = _coerce_record(item)
        if record is not None:
            records.append(record)
    return records


class GeminiExtractionClient:
    """Sends slices to Gemini with the key chosen by the dispatcher.

    A ``genai.Client`` is built per call since the key changes between
    attempts.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        prompt: str = DEFAULT_PROMPT,
        request_timeout_s: float = 120.0,
    ) -> None:
        self.model = model
        self.prompt = prompt
        self.request_timeout_s = request_timeout_s

    def _make_client(self, credential: str):
        return genai.Client(
            api_key=credential,
            http_options=types.HttpOptions(timeout=int(self.request_timeout_s * 1000)),
        )

    def extract(self, chunk: SliceChunk, credential: str) -> str:
        client = self._make_client(credential)
        resp = client.models.generate_content(
            model=self.model,
            contents=[
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_text(text=self.prompt),
                        types.Part.from_bytes(data=chunk.data, mime_type=chunk.mime_type),
                    ],
                ),
            ],
            config=types.GenerateContentConfig(
                temperature=0.0,
                response_mime_type="application/json",
            ),
        )
        return resp.text or "[]"

"""Helpers to turn Responses API output into validated structured data."""

import json
import re
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from utils.errors import UpstreamFormatError

_JSON_FENCE = re.compile(r"```json\s*")

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_text(response: Any) -> str:
    """Return the concatenated output_text of a response, or an empty string."""
    text = getattr(response, "output_text", None)
    if isinstance(text, str) and text:
        return text

    chunks = []
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for content in getattr(item, "content", None) or []:
            if getattr(content, "type", None) == "output_text":
                chunks.append(getattr(content, "text", "") or "")
    return "".join(chunks)


def clean_json_response(text: str) -> str:
    """Strip markdown code fences (```json ... ```) and surrounding whitespace."""
    return _JSON_FENCE.sub("", text or "").replace("```", "").strip()


def parse_structured(text: str, schema: Type[ModelT], *, stage: str) -> ModelT:
    """Decode cleaned model text and validate it against `schema`.

    Raises:
        UpstreamFormatError: If the text is not JSON, not an object, or fails
            schema validation.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise UpstreamFormatError(f"{stage} output is not valid JSON: {exc.msg}", raw=text, stage=stage) from exc

    if not isinstance(payload, dict):
        raise UpstreamFormatError(f"{stage} output must be a JSON object", raw=text, stage=stage)

    try:
        return schema.model_validate(payload)
    except SchemaValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise UpstreamFormatError(
            f"{stage} output failed validation ({fields or 'payload'})", raw=text, stage=stage
        ) from exc


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "input_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "output_tokens", None) if usage else None,
    }

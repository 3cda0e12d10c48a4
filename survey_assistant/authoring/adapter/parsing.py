# survey_assistant/authoring/adapter/parsing.py
"""JSON extraction from raw model output."""

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)


def extract_json(raw_output: str) -> dict[str, Any]:
    """
    Pull the JSON object out of a model response.

    Tries the whole text, then each fenced code block, then the span from
    the first "{" to the last "}". Only objects are accepted; a bare list
    or scalar is rejected like unparseable text.

    Raises:
        ValueError: If no JSON object can be recovered
    """
    text = raw_output.strip()
    if not text:
        raise ValueError("empty response")

    candidates = [text]
    candidates.extend(m.group(1).strip() for m in _FENCE_RE.finditer(text))
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    preview = text[:200].replace("\n", "\\n")
    raise ValueError(f"no JSON object in output ({len(text)} chars). Preview: {preview}")

"""JSON schemas for backend responses and helpers to validate them.

The same dictionaries are sent to the model as structured-output formats and
used to check what comes back, so a drifting response fails loudly instead of
producing half-filled models.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable

from jsonschema import Draft202012Validator, FormatChecker
from jsonschema.exceptions import ValidationError

from .errors import GenericStepError


def _strict_object(properties: Dict[str, Any]) -> Dict[str, Any]:
    # Strict structured outputs require every property to be listed as required.
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


ARTICLES_SCHEMA: Dict[str, Any] = _strict_object(
    {
        "articles": {
            "type": "array",
            "items": _strict_object(
                {
                    "title": {"type": "string"},
                    "source": {"type": "string"},
                    "timestamp": {"type": "string"},
                    "url": {"type": "string"},
                }
            ),
        }
    }
)

SUMMARIES_SCHEMA: Dict[str, Any] = _strict_object(
    {"summaries": {"type": "array", "items": {"type": "string"}}}
)

SCRIPT_SCHEMA: Dict[str, Any] = _strict_object(
    {
        "intro": {"type": "string"},
        "newsSegments": {
            "type": "array",
            "items": _strict_object(
                {
                    "title": {"type": "string"},
                    "script": {"type": "string"},
                    "transition": {"type": "string"},
                }
            ),
        },
        "outro": {"type": "string"},
    }
)


def format_errors(errors: Iterable[ValidationError]) -> str:
    """Turn jsonschema errors into a concise human-readable string."""
    parts = []
    for err in errors:
        location = ".".join(str(piece) for piece in err.absolute_path) or "<root>"
        parts.append(f"{location}: {err.message}")
    return "; ".join(parts)


def validate_payload(
    payload: Any, schema: Dict[str, Any], *, step: str
) -> Dict[str, Any]:
    """
    Validate a decoded backend payload against ``schema``.

    Raises GenericStepError with a readable message if validation fails.
    """
    validator = Draft202012Validator(schema, format_checker=FormatChecker())
    errors = list(validator.iter_errors(payload))
    if errors:
        raise GenericStepError(f"{step} schema validation failed: {format_errors(errors)}")
    return payload


def response_format(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap a schema as a Responses API ``text.format`` structured output."""
    return {"format": {"type": "json_schema", "name": name, "schema": schema, "strict": True}}

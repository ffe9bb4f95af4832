"""Schema helpers for LLM structured output."""

import copy
from typing import Any


def fix_schema_for_anthropic(schema: dict) -> dict:
    """Return a copy of ``schema`` with ``additionalProperties: false`` on every object.

    Anthropic's structured output requires it; pydantic does not emit it.
    """

    def fix_object(obj: Any) -> Any:
        if isinstance(obj, dict):
            if obj.get("type") == "object":
                obj["additionalProperties"] = False
            for key, value in obj.items():
                obj[key] = fix_object(value)
        elif isinstance(obj, list):
            return [fix_object(item) for item in obj]
        return obj

    return fix_object(copy.deepcopy(schema))

"""Helpers to parse Responses API outputs."""

import json
from typing import Any, Dict, List, Optional


def parse_function_call(response: Any, *, tool_name: str) -> Dict[str, Any]:
    """Extract and validate the summary/tags arguments for the specified tool name.

    Raises:
        RuntimeError: If no matching function call is present.
        ValueError: If the arguments are not JSON or do not match the schema.
    """
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) == "function_call" and getattr(item, "name", None) == tool_name:
            try:
                args = json.loads(getattr(item, "arguments", "") or "")
            except json.JSONDecodeError as exc:
                raise ValueError("Tool arguments are not valid JSON.") from exc
            return validate_analysis(args)
    raise RuntimeError(f"No function_call output for '{tool_name}' found in Responses API output.")


def validate_analysis(args: Any) -> Dict[str, Any]:
    """Check an analysis object against the {summary: str, tags: [str]} schema."""
    if not isinstance(args, dict):
        raise ValueError("Analysis output must be a JSON object.")
    summary = args.get("summary")
    tags = args.get("tags")
    if not isinstance(summary, str):
        raise ValueError("Analysis summary must be a string.")
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise ValueError("Analysis tags must be a list of strings.")
    tag_list: List[str] = list(tags)
    return {"summary": summary, "tags": tag_list}


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "input_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "output_tokens", None) if usage else None,
    }

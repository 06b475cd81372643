"""Schema definitions for the file content analysis tool."""

from typing import Any, Dict

FUNCTION_NAME = "describe_file_content"

FUNCTION_DEFINITION: Dict[str, Any] = {
    "type": "function",
    "name": FUNCTION_NAME,
    "description": "Return a short summary and categorization tags for the supplied file.",
    "parameters": {
        "type": "object",
        "properties": {
            "summary": {
                "type": "string",
                "description": "Concise summary of the file, at most two sentences.",
            },
            "tags": {
                "type": "array",
                "description": "Three to five short tags that help categorize the file.",
                "items": {"type": "string"},
            },
        },
        "required": ["summary", "tags"],
        "additionalProperties": False,
    },
    "strict": True,
}

"""Description: Multimodal file summarization and tagging using OpenAI's Responses API."""

import logging
import time
from typing import Any, Dict, List

from openai import AsyncOpenAI

from services.openai.analysis_prompts import build_system_prompt, build_user_prompt
from services.openai.analysis_schema import FUNCTION_DEFINITION, FUNCTION_NAME
from services.openai.media_inputs import build_inputs
from services.openai.response_parser import extract_usage, parse_function_call
from utils.file_kinds import strip_data_url

FALLBACK_SUMMARY = "Could not generate summary at this time."
FALLBACK_TAGS = ["untagged"]


def fallback_analysis() -> Dict[str, Any]:
    return {"summary": FALLBACK_SUMMARY, "tags": list(FALLBACK_TAGS)}


class ContentAnalyzer:
    """Produce a short summary and tag list for an uploaded file."""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-5") -> None:
        """Initialize the analyzer with an OpenAI async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.system_prompt = build_system_prompt()

    async def analyze(self, payload_b64: str, mime_type: str, name: str = "") -> Dict[str, Any]:
        """Summarize and tag a base64 payload.

        Never raises: transport, parse and validation failures are logged and
        replaced by the fixed fallback content.
        """
        start_time = time.time()
        try:
            inputs = build_inputs(
                self.system_prompt,
                build_user_prompt(name),
                payload_b64=strip_data_url(payload_b64),
                mime_type=mime_type,
                name=name,
            )
            response = await self._create_response(inputs)
            result = parse_function_call(response, tool_name=FUNCTION_NAME)
        except Exception as exc:
            logging.error("Content analysis failed for %r: %s", name or mime_type, exc)
            return fallback_analysis()

        usage = extract_usage(response)
        logging.info(
            "Content analysis latency: %.3fs (input_tokens=%s, output_tokens=%s)",
            time.time() - start_time,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return result

    async def _create_response(self, inputs: List[Dict[str, Any]]) -> Any:
        """Send the multimodal request to the OpenAI Responses API."""
        return await self.client.responses.create(
            model=self.model,
            input=inputs,
            tools=[FUNCTION_DEFINITION],
            tool_choice={"type": "function", "name": FUNCTION_NAME},
        )

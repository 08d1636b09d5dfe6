"""AI-assisted metadata extraction using OpenAI-compatible APIs.

Turns a raw ebook filename into validated BookMetadata. The model answers
from the filename alone when it can, and calls the searchBook tool (Open
Library) when information is missing instead of inventing it.
Works with any OpenAI-compatible endpoint (OpenAI, LiteLLM, Ollama).
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from pathlib import Path

import openai
from loguru import logger
from pydantic import ValidationError

from .api import openlibrary
from .errors import BookLookupError, ExtractionError
from .models import BookMetadata, SearchQuery, SearchResult

log = logger.bind(stage="extract")

SEARCH_TOOL_NAME = "searchBook"

SEARCH_TOOL = {
    "type": "function",
    "function": {
        "name": SEARCH_TOOL_NAME,
        "description": "Searches for a book. Returns null if no book is found.",
        "parameters": SearchQuery.model_json_schema(),
    },
}

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)


def get_client(base_url: str, api_key: str) -> openai.OpenAI:
    """Return an OpenAI client configured for the given endpoint.

    An empty base_url uses the SDK default endpoint; an empty api_key
    leaves key resolution to the SDK (OPENAI_API_KEY).
    """
    kwargs = {}
    if base_url:
        # OpenAI SDK expects base_url WITHOUT /v1 -- it appends that itself
        clean_url = base_url.rstrip("/")
        if clean_url.endswith("/v1"):
            clean_url = clean_url[:-3].rstrip("/")
        kwargs["base_url"] = clean_url
        kwargs["api_key"] = api_key or "not-needed"
    elif api_key:
        kwargs["api_key"] = api_key

    return openai.OpenAI(**kwargs)


def build_prompt(filename: str) -> str:
    """Build the extraction instruction for a single filename (basename only)."""
    schema = json.dumps(BookMetadata.model_json_schema())
    return (
        "Using the following file name for an ebook, extract the necessary "
        "information about the book. Your response should contain only valid "
        "JSON and match the following schema (all values are strings, "
        "including year):\n"
        f"{schema}\n\n"
        "Do not add any additional text or markup. If any information is "
        f"missing, use the {SEARCH_TOOL_NAME} tool, do not make up information.\n\n"
        f"{filename}"
    )


def parse_metadata(content: str | None, filename: str) -> BookMetadata:
    """Parse the model's final answer into BookMetadata.

    Raises ExtractionError on empty output, invalid JSON or schema mismatch.
    """
    if not content or not content.strip():
        raise ExtractionError("model returned an empty answer", filename)

    text = content.strip()
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"model answer is not valid JSON: {e}", filename) from e

    try:
        return BookMetadata.model_validate(data)
    except ValidationError as e:
        raise ExtractionError(
            f"model answer does not match schema: {e.error_count()} error(s)",
            filename,
        ) from e


class MetadataExtractor:
    """Runs the tool-calling conversation that resolves one filename.

    The loop is bounded by max_rounds completion requests; each request
    either yields the final answer or a batch of searchBook calls whose
    results are fed back before the next request.
    """

    def __init__(
        self,
        client,
        model: str,
        max_rounds: int = 5,
        search: Callable[[str], SearchResult | None] = openlibrary.search,
    ) -> None:
        self.client = client
        self.model = model
        self.max_rounds = max_rounds
        self.search = search

    def extract(self, path: str | Path) -> BookMetadata:
        filename = Path(path).name
        log.info(f"Parsing file {filename}")

        messages: list[dict] = [{"role": "user", "content": build_prompt(filename)}]

        for round_no in range(1, self.max_rounds + 1):
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    tools=[SEARCH_TOOL],
                )
            except openai.OpenAIError as e:
                raise ExtractionError(f"completion request failed: {e}", filename) from e

            if not response.choices:
                raise ExtractionError("completion returned no choices", filename)
            message = response.choices[0].message
            tool_calls = message.tool_calls or []

            if not tool_calls:
                metadata = parse_metadata(message.content, filename)
                log.info(
                    f"Resolved {filename}: title={metadata.title!r} "
                    f"author={metadata.author!r} year={metadata.year!r}"
                )
                return metadata

            log.debug(f"Round {round_no}: {len(tool_calls)} tool call(s) for {filename}")
            messages.append(
                {
                    "role": "assistant",
                    "content": message.content,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.function.name,
                                "arguments": call.function.arguments,
                            },
                        }
                        for call in tool_calls
                    ],
                }
            )
            for call in tool_calls:
                payload = self._run_tool(call.function.name, call.function.arguments)
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call.id,
                        "content": json.dumps(payload),
                    }
                )

        raise ExtractionError(
            f"no final answer after {self.max_rounds} completion round(s)", filename
        )

    def _run_tool(self, name: str, arguments: str) -> dict | None:
        """Execute one tool call; failures become error payloads for the model."""
        if name != SEARCH_TOOL_NAME:
            log.warning(f"Model requested unknown tool {name!r}")
            return {"error": f"unknown tool {name!r}"}

        try:
            query = SearchQuery.model_validate_json(arguments or "{}")
        except ValidationError as e:
            log.warning(f"Invalid {SEARCH_TOOL_NAME} arguments {arguments!r}")
            return {"error": f"invalid arguments: {e.error_count()} error(s)"}

        try:
            result = self.search(query.query)
        except BookLookupError as e:
            log.warning(f"Book lookup failed for {query.query!r}: {e}")
            return {"error": str(e)}

        return result.to_tool_payload() if result else None

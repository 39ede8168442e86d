"""Generation requesters: one request, one structured reply."""

from __future__ import annotations

from typing import Any, Protocol

import structlog
from mcp import types
from mcp.server.session import ServerSession
from pydantic import BaseModel, Field, ValidationError

from commitsmith.errors import GenerationError
from commitsmith.models import SamplingReply

logger = structlog.get_logger(__name__)


class SamplingParams(BaseModel):
    """Generation parameters sent with every request."""

    max_tokens: int = 200
    temperature: float = 0.3
    model_hints: list[str] = Field(default_factory=lambda: ["claude-3-sonnet"])
    intelligence_priority: float = 0.8
    speed_priority: float = 0.5


class GenerationRequester(Protocol):
    async def request(
        self, system_prompt: str, user_prompt: str, params: SamplingParams
    ) -> SamplingReply:
        ...


def parse_reply(raw: Any) -> SamplingReply:
    """Validate a reply dict into a SamplingReply.

    Accepts either a single content block or a list of blocks, in which case
    the first text block wins.
    """
    if not isinstance(raw, dict):
        raise GenerationError("Invalid response from sampling request")

    content = raw.get("content")
    if isinstance(content, list):
        content = next((block for block in content if isinstance(block, dict) and block.get("type") == "text"), None)

    try:
        return SamplingReply.model_validate(
            {
                "role": raw.get("role"),
                "content": content,
                "model": raw.get("model"),
                "stop_reason": raw.get("stop_reason", raw.get("stopReason")),
            }
        )
    except ValidationError as e:
        raise GenerationError(f"Invalid response from sampling request: {e.error_count()} field errors")


class McpSamplingRequester:
    """Asks the connected MCP client to sample a message (``sampling/createMessage``)."""

    def __init__(self, session: ServerSession):
        self._session = session

    async def request(
        self, system_prompt: str, user_prompt: str, params: SamplingParams
    ) -> SamplingReply:
        result = await self._session.create_message(
            messages=[
                types.SamplingMessage(
                    role="user",
                    content=types.TextContent(type="text", text=user_prompt),
                )
            ],
            max_tokens=params.max_tokens,
            system_prompt=system_prompt,
            temperature=params.temperature,
            model_preferences=types.ModelPreferences(
                hints=[types.ModelHint(name=hint) for hint in params.model_hints],
                intelligencePriority=params.intelligence_priority,
                speedPriority=params.speed_priority,
            ),
        )
        return parse_reply(result.model_dump())


class GeminiRequester:
    """Generates directly with Gemini, for use outside an MCP host."""

    def __init__(self, api_key: str | None, model: str = "gemini-2.0-flash"):
        import google.genai as genai

        self._client = genai.Client(api_key=api_key)
        self.model = model

    async def request(
        self, system_prompt: str, user_prompt: str, params: SamplingParams
    ) -> SamplingReply:
        from google.genai import types as genai_types

        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=user_prompt,
            config=genai_types.GenerateContentConfig(
                system_instruction=system_prompt,
                max_output_tokens=params.max_tokens,
                temperature=params.temperature,
            ),
        )
        logger.debug("gemini_response", model=self.model)
        return parse_reply(
            {
                "role": "assistant",
                "content": {"type": "text", "text": response.text},
                "model": self.model,
            }
        )

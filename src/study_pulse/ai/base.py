"""Shared plumbing for the OpenAI-backed text generators."""

import json
from typing import Any

import structlog
from openai import AsyncOpenAI, OpenAIError

logger = structlog.get_logger()


class AIServiceError(Exception):
    """The language model could not be reached or returned unusable output."""


class JSONCompletionClient:
    """Sends a system/user prompt pair and parses a JSON object reply.

    Args:
        api_key: OpenAI API key.
        model: Chat model name.
    """

    def __init__(self, api_key: str, model: str = "gpt-4o-mini"):
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def _complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
    ) -> dict[str, Any]:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.exception("llm_request_failed", model=self.model)
            raise AIServiceError("Language model request failed") from e

        content = response.choices[0].message.content or ""
        try:
            result = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("llm_response_not_json", model=self.model, length=len(content))
            raise AIServiceError("Language model returned invalid JSON") from e
        if not isinstance(result, dict):
            raise AIServiceError("Language model returned a non-object JSON value")
        return result

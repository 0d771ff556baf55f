"""OpenAI-compatible provider (OpenAI, OpenRouter, LM Studio)."""

import json
from typing import Any

from kungfu import Error, Nothing, Ok, Option, Result, Some
from openai import APIError, AsyncOpenAI
from pydantic import BaseModel, ValidationError

from prosegate.providers.base import ABCAIProvider, Prompt


class OpenAICompatibleError:
    """Error from an OpenAI-compatible API."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return self.message


class OpenAICompatibleProvider(ABCAIProvider[OpenAICompatibleError]):
    """
    Provider for any OpenAI-compatible chat completions API.

    Works with:
    - OpenAI (default base URL)
    - OpenRouter (https://openrouter.ai/api/v1)
    - LM Studio (default: http://localhost:1234/v1)
    """

    def __init__(
        self,
        model: str,
        base_url: str | None = None,
        api_key: str | None = None,
        temperature: Option[float] = Nothing(),
        max_tokens: int = 4096,
    ) -> None:
        self.client = AsyncOpenAI(base_url=base_url, api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def interpret[S: BaseModel](
        self, prompt: Prompt, schema: type[S]
    ) -> Result[S, OpenAICompatibleError]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            "max_tokens": prompt.max_tokens or self.max_tokens,
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "response",
                    "schema": schema.model_json_schema(),
                },
            },
        }

        match self.temperature:
            case Some(temp):
                kwargs["temperature"] = temp
            case _:
                pass

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except APIError as e:
            return Error(OpenAICompatibleError(str(e), e.code))

        choice = response.choices[0]
        content = choice.message.content
        if not content:
            return Error(
                OpenAICompatibleError(
                    f"Model did not return structured output "
                    f"(finish_reason={choice.finish_reason})",
                    "empty_response",
                )
            )

        try:
            return Ok(schema.model_validate(json.loads(content)))
        except (json.JSONDecodeError, ValidationError) as e:
            return Error(
                OpenAICompatibleError(f"Invalid structured output: {e}", "parse_error")
            )


__all__ = ["OpenAICompatibleProvider", "OpenAICompatibleError"]

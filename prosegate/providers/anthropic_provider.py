"""Anthropic Claude provider."""

from dataclasses import dataclass, field
from typing import Any

import httpx
from anthropic import APIError, AsyncAnthropic
from kungfu import Error, Nothing, Ok, Option, Result, Some, from_optional
from pydantic import BaseModel, ValidationError

from prosegate.providers.base import ABCAIProvider, Prompt


@dataclass(frozen=True)
class AnthropicError:
    """Error from Anthropic API."""

    message: str
    request: httpx.Request | None = None
    body: Option[object] = field(default_factory=Nothing)

    @classmethod
    def from_api_error(cls, e: APIError) -> "AnthropicError":
        return cls(
            message=e.message,
            request=e.request,
            body=from_optional(e.body),
        )

    def __str__(self) -> str:
        return self.message


def _schema_to_tool[S: BaseModel](schema: type[S]) -> dict[str, Any]:
    """Convert Pydantic schema to tool for structured output."""
    json_schema = schema.model_json_schema()
    json_schema.pop("$defs", None)

    return {
        "name": f"respond_with_{schema.__name__.lower()}",
        "description": f"Use this tool to respond with a structured {schema.__name__}. "
        f"Always use this tool to provide your final answer.",
        "input_schema": json_schema,
    }


def _tool_input(content: list[dict[str, Any]], tool_name: str) -> dict[str, Any] | None:
    """Find the input of the forced schema tool call."""
    for block in content:
        if block.get("type") == "tool_use" and block.get("name") == tool_name:
            return block.get("input")
    return None


class AnthropicProvider(ABCAIProvider[AnthropicError]):
    """Anthropic Claude provider. Structured output via a forced tool call."""

    def __init__(
        self,
        model: str,
        api_key: Option[str] = Nothing(),
        temperature: Option[float] = Nothing(),
        max_tokens: int = 4096,
    ) -> None:
        self.client = AsyncAnthropic(api_key=api_key.unwrap_or_none())
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def interpret[S: BaseModel](
        self, prompt: Prompt, schema: type[S]
    ) -> Result[S, AnthropicError]:
        tool = _schema_to_tool(schema)

        kwargs: dict[str, Any] = {
            "model": self.model,
            "system": prompt.system,
            "messages": [{"role": "user", "content": prompt.user}],
            "max_tokens": prompt.max_tokens or self.max_tokens,
            "tools": [tool],
            # Force the model to use the schema tool
            "tool_choice": {"type": "tool", "name": tool["name"]},
        }

        match self.temperature:
            case Some(temp):
                kwargs["temperature"] = temp
            case _:
                pass

        try:
            response = await self.client.messages.create(**kwargs)
        except APIError as e:
            return Error(AnthropicError.from_api_error(e))

        content = [
            block.model_dump() if hasattr(block, "model_dump") else block
            for block in response.content
        ]
        arguments = _tool_input(content, tool["name"])
        if arguments is None:
            return Error(
                AnthropicError(
                    message=f"Model did not return structured output "
                    f"(stop_reason={response.stop_reason})"
                )
            )

        try:
            return Ok(schema.model_validate(arguments))
        except ValidationError as e:
            return Error(AnthropicError(message=f"Invalid structured output: {e}"))


__all__ = ["AnthropicProvider", "AnthropicError"]

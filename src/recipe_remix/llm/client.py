"""
Recipe Remix - LLM Client.

Wraps AsyncOpenAI. All LLM calls go through here for consistent model
selection, prompt logging, and error mapping: any OpenAI error surfaces as
ServiceFailure.
"""

from typing import Any

from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import ChatCompletionMessage

from recipe_remix.config import settings
from recipe_remix.errors import ServiceFailure
from recipe_remix.llm.model_router import get_operation_config
from recipe_remix.llm.prompt_logger import log_prompt

# Singleton client instance
_client: AsyncOpenAI | None = None


def get_client() -> AsyncOpenAI:
    """
    Get the OpenAI client.

    Uses singleton pattern to reuse connection.

    Raises:
        ServiceFailure: if no API key is configured
    """
    global _client

    if _client is None:
        if not settings.openai_api_key:
            raise ServiceFailure("OpenAI API key is not configured")
        _client = AsyncOpenAI(api_key=settings.openai_api_key)

    return _client


async def call_llm(
    *,
    operation: str,
    messages: list[dict[str, Any]],
    tools: list[dict[str, Any]] | None = None,
) -> ChatCompletionMessage:
    """
    Make one chat completion call.

    Args:
        operation: AI operation name, selects model config and log file name
        messages: Chat messages, including any system message
        tools: Function tool definitions the model may call

    Returns:
        The assistant message (text content and/or tool calls)

    Raises:
        ServiceFailure: network, auth, rate limit, or empty response
    """
    client = get_client()
    config = get_operation_config(operation)
    model = config.pop("model")

    api_kwargs: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "store": False,  # Explicitly disable conversation storage
        **config,
    }
    if tools:
        api_kwargs["tools"] = tools

    try:
        response = await client.chat.completions.create(**api_kwargs)
    except OpenAIError as e:
        log_prompt(operation=operation, model=model, messages=messages, error=str(e), config=config)
        raise ServiceFailure(f"AI service error: {e}") from e

    if not response.choices:
        log_prompt(operation=operation, model=model, messages=messages, error="no choices", config=config)
        raise ServiceFailure("AI service returned no response")

    message = response.choices[0].message
    logged: Any = message.content
    if message.tool_calls:
        logged = {call.function.name: call.function.arguments for call in message.tool_calls}
    log_prompt(operation=operation, model=model, messages=messages, response=logged, config=config)

    return message

"""Language-model access through the Claude API."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import anthropic

from moonphase.errors import NetworkError

logger = logging.getLogger(__name__)

_WEB_SEARCH_TOOL: dict[str, Any] = {
    "type": "web_search_20250305",
    "name": "web_search",
    "max_uses": 5,
}


@dataclass(frozen=True)
class ModelReply:
    """Text of one model answer."""

    text: str
    structured: bool = False  # True when text is bare JSON produced under a schema


class ModelClient(Protocol):
    async def generate(
        self,
        prompt: str,
        *,
        web_search: bool = False,
        schema: dict[str, Any] | None = None,
    ) -> ModelReply: ...


def _reply_text(content: list[Any]) -> str:
    """Join the text blocks that follow the last search result.

    With web search on, the model narrates before searching ("Let me look
    that up"); only the text after the final tool result is the answer.
    """
    start = 0
    for i, block in enumerate(content):
        if block.type != "text":
            start = i + 1
    return "".join(block.text for block in content[start:] if block.type == "text")


class AnthropicModel:
    """ModelClient backed by ``anthropic.AsyncAnthropic``.

    A schema is sent as native structured output (``output_config.format``).
    Search-grounded answers are left as free text and the schema is not sent
    with them.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-6",
        timeout: float = 15.0,
        max_tokens: int = 1024,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self._client = client or anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=0
        )

    async def generate(
        self,
        prompt: str,
        *,
        web_search: bool = False,
        schema: dict[str, Any] | None = None,
    ) -> ModelReply:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        use_schema = schema is not None and not web_search
        if web_search:
            kwargs["tools"] = [_WEB_SEARCH_TOOL]
        elif use_schema:
            kwargs["output_config"] = {"format": {"type": "json_schema", "schema": schema}}

        try:
            message = await self._client.messages.create(**kwargs)
        except anthropic.APITimeoutError as e:
            raise NetworkError("Model request timed out.", retriable=True) from e
        except anthropic.APIConnectionError as e:
            raise NetworkError(f"Model connection failed: {e}", retriable=True) from e
        except anthropic.APIStatusError as e:
            retriable = e.status_code == 429 or e.status_code >= 500
            raise NetworkError(
                f"Model API responded with status: {e.status_code}", retriable=retriable
            ) from e
        except anthropic.AnthropicError as e:
            raise NetworkError(f"Model request failed: {e}") from e

        logger.debug("Model stop_reason=%s", message.stop_reason)
        return ModelReply(text=_reply_text(message.content), structured=use_schema)

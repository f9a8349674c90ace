"""Chat providers for answer generation.

Security: the API key is read from settings only, never hardcoded.
Provides a deterministic stub when no key is present for testing.
"""

import logging
from typing import Protocol

import openai
from openai import AsyncOpenAI

from docrag.config import Settings
from docrag.llm.executor import ProviderCallExecutor, ProviderLogger, ProviderMetrics, RetryConfig
from docrag.llm.openai_support import translate_openai_error

logger = logging.getLogger(__name__)


class ChatProvider(Protocol):
    """Protocol for chat provider implementations."""

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Generate a reply.

        Returns:
            Generated text; an empty string when the model produced nothing

        Raises:
            ProviderError: On transport, auth or rate-limit failure
        """
        ...


class DeterministicStubChatProvider:
    """Deterministic stub chat provider (no API key required)."""

    name = "stub"

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Echo the question back with a count of context characters."""
        question = ""
        context_chars = 0
        for line in user_prompt.splitlines():
            if line.startswith("Question: "):
                question = line.removeprefix("Question: ")
            elif line and line != "Context:":
                context_chars += len(line)

        if context_chars == 0:
            return f"No information available to answer: {question}"

        return (
            f"Stub answer for: {question}\n\n"
            f"*Generated without a language model from {context_chars} characters of context.*"
        )


class OpenAIChatProvider:
    """OpenAI-backed chat provider."""

    name = "openai"

    def __init__(
        self,
        client: AsyncOpenAI,
        executor: ProviderCallExecutor,
        model: str = "gpt-4o-mini",
    ) -> None:
        """Initialize provider.

        Args:
            client: Shared AsyncOpenAI client
            executor: Retry/timeout executor for completion calls
            model: Chat model name
        """
        self._client = client
        self._executor = executor
        self.model = model

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Generate a reply using the OpenAI chat completions API."""

        async def request() -> str:
            try:
                response = await self._client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                )
            except openai.APIError as e:
                raise translate_openai_error(e) from e

            if not response.choices:
                logger.warning("OpenAI returned no choices")
                return ""
            return response.choices[0].message.content or ""

        return await self._executor.call("complete", request)


def build_chat_provider(
    settings: Settings,
    client: AsyncOpenAI | None,
    *,
    metrics: ProviderMetrics | None = None,
    provider_logger: ProviderLogger | None = None,
) -> ChatProvider:
    """Factory: OpenAI provider when a client exists, deterministic stub otherwise."""
    if client is None:
        return DeterministicStubChatProvider()

    executor = ProviderCallExecutor(
        "openai",
        RetryConfig.from_settings(settings),
        metrics=metrics,
        logger=provider_logger,
    )
    return OpenAIChatProvider(client, executor, model=settings.chat_model)

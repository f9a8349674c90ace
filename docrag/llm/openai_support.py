"""Shared OpenAI client construction and SDK error translation."""

import logging

import openai
from openai import AsyncOpenAI

from docrag.config import Settings
from docrag.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderTransportError,
)

logger = logging.getLogger(__name__)


def create_openai_client(settings: Settings) -> AsyncOpenAI | None:
    """Create the process-wide OpenAI client, or None when no key is configured.

    SDK-level retries are disabled; retries are owned by ProviderCallExecutor.
    """
    api_key = settings.openai_api_key
    if api_key is None or not api_key.get_secret_value():
        logger.warning("No OpenAI API key configured, using deterministic offline providers")
        return None

    logger.info(
        f"Using OpenAI providers (embedding={settings.embedding_model}, chat={settings.chat_model})"
    )
    return AsyncOpenAI(api_key=api_key.get_secret_value(), max_retries=0)


def translate_openai_error(exc: openai.APIError) -> ProviderError:
    """Map an OpenAI SDK exception onto the provider error taxonomy."""
    detail = f"{type(exc).__name__}: {exc}"

    if isinstance(exc, openai.RateLimitError):
        return ProviderRateLimitError(detail)
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ProviderAuthError(detail)
    # APITimeoutError is a subclass of APIConnectionError
    if isinstance(exc, (openai.APIConnectionError, openai.InternalServerError)):
        return ProviderTransportError(detail)
    if isinstance(exc, openai.APIResponseValidationError):
        return ProviderResponseError(detail)
    return ProviderError(detail)

"""Helpers for building provider-specific chat models."""

from __future__ import annotations

from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.azure import AzureProvider
from pydantic_ai.providers.openai import OpenAIProvider

from voicebridge.config import LLMSettings


def build_chat_model(llm_settings: LLMSettings, model_name: str | None = None) -> OpenAIChatModel:
    model_name = model_name or llm_settings.model
    if llm_settings.provider == "azure":
        api_key = llm_settings.azure.api_key or llm_settings.api_key
        base_url = llm_settings.azure.base_url or llm_settings.base_url
        api_version = llm_settings.azure.api_version or llm_settings.api_version
        if not (api_key and base_url and api_version):
            raise ValueError(
                "Azure OpenAI requires BOT_LLM__AZURE__API_KEY, BOT_LLM__AZURE__BASE_URL, and BOT_LLM__AZURE__API_VERSION."
            )
        provider = AzureProvider(
            azure_endpoint=str(base_url),
            api_version=api_version,
            api_key=api_key.get_secret_value(),
        )
        return OpenAIChatModel(model_name, provider=provider)

    api_key, base_url = llm_settings.openai_like_credentials(llm_settings.provider)
    if llm_settings.provider == "custom" and base_url is None:
        raise ValueError("Provider 'custom' requires BOT_LLM__CUSTOM__BASE_URL.")
    provider = OpenAIProvider(
        api_key=api_key.get_secret_value() if api_key else None,
        base_url=base_url,
    )
    return OpenAIChatModel(model_name, provider=provider)


__all__ = ["build_chat_model"]

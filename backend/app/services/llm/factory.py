"""Provider registry."""
from __future__ import annotations

from typing import Callable, Dict, Type

from app.services.llm.anthropic_provider import AnthropicMessagesProvider
from app.services.llm.base import LLMProvider, UnsupportedProviderError
from app.services.llm.openai_provider import OpenAIChatProvider

PROVIDERS: Dict[str, Type[LLMProvider]] = {
    OpenAIChatProvider.name: OpenAIChatProvider,
    AnthropicMessagesProvider.name: AnthropicMessagesProvider,
}


def get_provider(name: str) -> LLMProvider:
    try:
        provider_cls = PROVIDERS[name.lower()]
    except KeyError as exc:
        raise UnsupportedProviderError(f"Unsupported AI provider: {name}") from exc
    return provider_cls()


def get_provider_factory() -> Callable[[str], LLMProvider]:
    """FastAPI dependency; tests override it to inject fake providers."""
    return get_provider

"""Anthropic messages provider."""
from __future__ import annotations

import logging
from typing import Any, Dict, Sequence

import anthropic

from app.core.config import settings
from app.services.llm.base import ChatMessage, LLMProvider, ProviderError, split_system

logger = logging.getLogger(__name__)


def build_request_params(messages: Sequence[ChatMessage], model: str) -> Dict[str, Any]:
    """Messages payload: the system prompt travels as a top-level field."""
    system, turns = split_system(messages)
    params: Dict[str, Any] = {
        "model": model,
        "max_tokens": settings.ai_max_tokens,
        "messages": [m.as_dict() for m in turns],
    }
    if system:
        params["system"] = system
    return params


class AnthropicMessagesProvider(LLMProvider):
    name = "anthropic"

    def complete(self, messages: Sequence[ChatMessage], api_key: str, model: str) -> str:
        client = anthropic.Anthropic(api_key=api_key, timeout=settings.ai_request_timeout_seconds)
        params = build_request_params(messages, model)
        logger.debug("Anthropic request model=%s turns=%d", model, len(params["messages"]))
        try:
            response = client.messages.create(**params)
        except anthropic.APIStatusError as exc:
            raise ProviderError(self.name, exc.status_code, exc.response.text) from exc
        except anthropic.APIConnectionError as exc:
            raise ProviderError(self.name, None, str(exc)) from exc

        if not response.content:
            return ""
        return getattr(response.content[0], "text", None) or ""

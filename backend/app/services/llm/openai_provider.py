"""OpenAI chat-completions provider."""
from __future__ import annotations

import logging
from typing import Any, Dict, Sequence

import openai

from app.core.config import settings
from app.services.llm.base import ChatMessage, LLMProvider, ProviderError

logger = logging.getLogger(__name__)


def is_reasoning_model(model: str) -> bool:
    return model.startswith(tuple(settings.ai_reasoning_model_prefixes))


def build_request_params(messages: Sequence[ChatMessage], model: str) -> Dict[str, Any]:
    """Chat-completions payload; reasoning models take a different token field and no temperature."""
    params: Dict[str, Any] = {
        "model": model,
        "messages": [m.as_dict() for m in messages],
    }
    if is_reasoning_model(model):
        params["max_completion_tokens"] = settings.ai_reasoning_max_completion_tokens
    else:
        params["max_tokens"] = settings.ai_max_tokens
        params["temperature"] = settings.ai_temperature
    return params


class OpenAIChatProvider(LLMProvider):
    name = "openai"

    def complete(self, messages: Sequence[ChatMessage], api_key: str, model: str) -> str:
        client = openai.OpenAI(api_key=api_key, timeout=settings.ai_request_timeout_seconds)
        params = build_request_params(messages, model)
        logger.debug("OpenAI request model=%s messages=%d", model, len(params["messages"]))
        try:
            completion = client.chat.completions.create(**params)
        except openai.APIStatusError as exc:
            raise ProviderError(self.name, exc.status_code, exc.response.text) from exc
        except openai.APIConnectionError as exc:
            raise ProviderError(self.name, None, str(exc)) from exc

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""

"""Language-model provider interface."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Sequence

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str

    def as_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ProviderError(Exception):
    """Upstream call did not succeed; carries the HTTP status and body text."""

    def __init__(self, provider: str, status_code: Optional[int], body: str):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(f"{provider} API error: {status_code if status_code is not None else 'n/a'} - {body}")


class UnsupportedProviderError(ValueError):
    pass


class LLMProvider:
    """Base interface for chat-capable model providers."""

    name: str = ""

    def complete(self, messages: Sequence[ChatMessage], api_key: str, model: str) -> str:
        """Send the conversation (system message first, if any) and return the reply text."""
        raise NotImplementedError


def split_system(messages: Sequence[ChatMessage]) -> tuple[Optional[str], List[ChatMessage]]:
    """Separate the first system message from the user/assistant turns."""
    system = next((m.content for m in messages if m.role == "system"), None)
    turns = [m for m in messages if m.role != "system"]
    return system, turns

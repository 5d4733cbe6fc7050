from __future__ import annotations

from typing import Any, Dict, List

import requests

from scheduler.core import config
from scheduler.models.provider import Provider

SYSTEM_PROMPT = """You are an assistant for a patient scheduling system. You help patients book, cancel and reschedule appointments.

Available providers:
{providers}

Always be helpful, professional and clear. If you need to book an appointment, ask for the patient's name and preferred time."""


def build_messages(message: str, providers: List[Provider]) -> List[Dict[str, str]]:
    lines = "\n".join(
        f"- {p.doctor} ({p.specialty}) at {p.location} - Rating: {p.rating}/5" for p in providers
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT.format(providers=lines or "- none")},
        {"role": "user", "content": message},
    ]


class ChatCompletionClient:
    """Minimal client for an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: str,
        url: str = config.LLM_CHAT_URL,
        model: str = config.LLM_MODEL,
        timeout: float = config.LLM_TIMEOUT,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> None:
        if not api_key:
            raise ValueError("An API key is required for the chat completions client.")
        self.api_key = api_key
        self.url = url
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    def __call__(self, messages: List[Dict[str, str]]) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        resp = requests.post(self.url, headers=headers, json=payload, timeout=self.timeout)
        resp.raise_for_status()

        data = resp.json()
        content = data["choices"][0]["message"].get("content", "") or ""
        if not content.strip():
            raise ValueError("Chat completion returned no content.")
        return content.strip()


def client_from_config() -> ChatCompletionClient | None:
    """Returns a client only when an API key is configured."""
    if not config.LLM_API_KEY:
        return None
    return ChatCompletionClient(config.LLM_API_KEY)

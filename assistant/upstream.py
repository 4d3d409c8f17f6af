from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, List

import httpx

from assistant.errors import RelayError, UpstreamError
from config.settings import Settings


logger = logging.getLogger("luminary.upstream")

VALID_ROLES = {"system", "user", "assistant"}


def to_openai_messages(system_prompt: str, history: List[dict], limit: int = 20) -> List[Dict[str, str]]:
    """Prefix the most recent ``limit`` history turns with one system message."""
    messages: List[Dict[str, str]] = [{"role": "system", "content": system_prompt}]
    recent = (history or [])[-limit:] if limit > 0 else []
    for item in recent:
        role = (item.get("role") or "").lower()
        if role not in VALID_ROLES:
            # Unknown roles are forwarded as user turns
            role = "user"
        messages.append({"role": role, "content": item.get("content") or ""})
    return messages


class UpstreamChatClient:
    """Client for an OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings) -> None:
        self.http = http
        self.settings = settings

    @property
    def _url(self) -> str:
        return self.settings.openai_base_url.rstrip("/") + "/chat/completions"

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.openai_api_key}",
        }

    async def stream_completion(self, system_prompt: str, history: List[dict]) -> AsyncIterator[bytes]:
        """Open a streamed completion and return its raw body pieces.

        Raises ``UpstreamError`` before anything is streamed when the API
        answers with a non-success status. The returned iterator closes the
        upstream response when it is exhausted or closed early.
        """
        payload = {
            "model": self.settings.chat_model,
            "messages": to_openai_messages(system_prompt, history, self.settings.history_limit),
            "stream": True,
            "max_completion_tokens": self.settings.chat_max_tokens,
            "temperature": self.settings.temperature,
        }
        logger.info(
            "Opening upstream stream: model=%s messages=%s",
            payload["model"],
            len(payload["messages"]),
        )
        request = self.http.build_request("POST", self._url, json=payload, headers=self._headers)
        response = await self.http.send(request, stream=True)
        if not response.is_success:
            try:
                body = (await response.aread()).decode("utf-8", errors="replace")
            finally:
                await response.aclose()
            logger.error("OpenAI error: %s %s", response.status_code, body)
            raise UpstreamError(response.status_code, body)
        return self._iter_body(response)

    async def _iter_body(self, response: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for raw in response.aiter_bytes():
                yield raw
        except httpx.TransportError as exc:
            raise RelayError(f"Upstream stream interrupted: {exc}") from exc
        finally:
            await response.aclose()

    async def complete(self, messages: List[Dict[str, str]], max_tokens: int) -> str:
        """Run a one-shot completion and return the first choice's text."""
        payload: Dict[str, Any] = {
            "model": self.settings.assist_model,
            "messages": messages,
            "max_completion_tokens": max_tokens,
        }
        response = await self.http.post(self._url, json=payload, headers=self._headers)
        if not response.is_success:
            raise UpstreamError(response.status_code, response.text)
        data = response.json()
        content = data["choices"][0]["message"]["content"]
        if not isinstance(content, str) or not content.strip():
            raise UpstreamError(response.status_code, "empty completion content")
        return content.strip()

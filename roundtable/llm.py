"""Chat model clients — HTTP connections to chat-completion backends.

The scheduler injects a chat callable matching the protocol:

    async def __call__(self, binding: ModelBinding, transcript: list[ChatMessage]) -> str: ...

`binding` carries everything needed to reach the model (provider, endpoint,
model name, key, temperature). One callable serves every participant in a
discussion; routing happens per call.

Two implementations are provided:

    HttpChat  : real HTTP client. "ollama" uses the native Ollama chat API,
                every other provider the OpenAI-compatible chat API.
    EchoChat  : replies with the last transcript entry. Useful for running
                the scheduler without a model.

Tests use StubChat (defined in conftest.py) instead.
"""

from __future__ import annotations

import logging
import re
from typing import Literal, Protocol

import httpx
from pydantic import BaseModel

from roundtable.models import ModelBinding, ModelProvider

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


# ---------------------------------------------------------------------------
# Protocol: every chat implementation must match this signature
# ---------------------------------------------------------------------------

class ChatModel(Protocol):
    async def __call__(self, binding: ModelBinding, transcript: list[ChatMessage]) -> str: ...


# ---------------------------------------------------------------------------
# Provider defaults
# ---------------------------------------------------------------------------

DEFAULT_ENDPOINTS: dict[str, str] = {
    "ollama": "http://localhost:11434",
    "openai": "https://api.openai.com/v1",
    "deepseek": "https://api.deepseek.com/v1",
    "moonshot": "https://api.moonshot.cn/v1",
    "zhipu": "https://open.bigmodel.cn/api/paas/v4",
    "bailian": "https://dashscope.aliyuncs.com/compatible-mode/v1",
    "qwen": "https://dashscope.aliyuncs.com/compatible-mode/v1",
}

OPENAI_MODELS = ["gpt-3.5-turbo", "gpt-4o", "gpt-4-turbo"]

_THINK_RE = re.compile(r"<think>.*?</think>", re.IGNORECASE | re.DOTALL)
_ESCAPED_THINK_RE = re.compile(r"&lt;think&gt;.*?&lt;/think&gt;", re.IGNORECASE | re.DOTALL)


def base_url(binding: ModelBinding) -> str:
    """Endpoint without trailing slash; repairs a doubled /v1/v1 suffix."""
    url = (binding.endpoint or DEFAULT_ENDPOINTS[binding.provider]).rstrip("/")
    if url.endswith("/v1/v1"):
        url = url[: -len("/v1")]
    return url


def strip_thinking(text: str) -> str:
    """Drop <think>…</think> blocks emitted by reasoning models."""
    text = _THINK_RE.sub("", text)
    text = _ESCAPED_THINK_RE.sub("", text)
    return text.strip()


# ---------------------------------------------------------------------------
# HttpChat: connects to a real backend
# ---------------------------------------------------------------------------

class HttpChat:
    """Async HTTP client for chat backends.

    Supported formats (selected by binding.provider):
      "ollama"      -> POST {endpoint}/api/chat
                      {"model", "messages", "stream": false, "options": {"temperature"}}
                      Response: {"message": {"content": "..."}}
      anything else -> POST {endpoint}/chat/completions   (OpenAI-compatible)
                      {"model", "messages", "temperature", "stream": false}
                      Response: {"choices": [{"message": {"content": "..."}}]}

    Args:
        timeout: HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(self, timeout: float = 120.0) -> None:
        self._timeout = timeout

    def _headers(self, binding: ModelBinding) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if binding.provider != "ollama":
            headers["Authorization"] = f"Bearer {binding.api_key}"
        return headers

    def _build_request(
        self, binding: ModelBinding, transcript: list[ChatMessage]
    ) -> tuple[str, dict]:
        """Return (url, body) for the binding's provider."""
        messages = [m.model_dump() for m in transcript]
        if binding.provider == "ollama":
            url = f"{base_url(binding)}/api/chat"
            return url, {
                "model": binding.model,
                "messages": messages,
                "stream": False,
                "options": {"temperature": binding.temperature},
            }

        url = f"{base_url(binding)}/chat/completions"
        return url, {
            "model": binding.model,
            "messages": messages,
            "temperature": binding.temperature,
            "stream": False,
        }

    def _parse_response(self, binding: ModelBinding, data: dict) -> str:
        """Extract the reply text from the response body."""
        if binding.provider == "ollama":
            message = data.get("message")
            if not isinstance(message, dict) or "content" not in message:
                raise LLMError("Unexpected response format from Ollama backend")
            return message["content"]

        choices = data.get("choices")
        if (
            not isinstance(choices, list)
            or not choices
            or not isinstance(choices[0], dict)
            or not isinstance(choices[0].get("message"), dict)
            or "content" not in choices[0]["message"]
        ):
            raise LLMError(f"Unexpected response format from {binding.provider} backend")
        return choices[0]["message"]["content"] or ""

    async def __call__(self, binding: ModelBinding, transcript: list[ChatMessage]) -> str:
        if binding.provider != "ollama" and not binding.api_key:
            raise LLMError(f"{binding.provider} API key is required")

        url, body = self._build_request(binding, transcript)
        logger.debug(
            "chat call provider=%s model=%s url=%s messages=%d",
            binding.provider, binding.model, url, len(transcript),
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers(binding))
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to {binding.provider} backend at {base_url(binding)}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(_status_error_message(e.response)) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"{binding.provider} backend timed out after {self._timeout}s") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise LLMError(f"{binding.provider} request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError(f"{binding.provider} backend returned invalid JSON") from e
        if not isinstance(data, dict):
            raise LLMError(f"Unexpected response format from {binding.provider} backend")

        text = strip_thinking(self._parse_response(binding, data))
        logger.debug("chat response provider=%s len=%d", binding.provider, len(text))
        return text


def _status_error_message(response: httpx.Response) -> str:
    """Prefer the provider's own error message over the bare status code."""
    message = f"backend returned HTTP {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        return message
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return f"{message}: {error['message']}"
        if isinstance(error, str) and error:
            return f"{message}: {error}"
    return message


# ---------------------------------------------------------------------------
# Connection check and model listing
# ---------------------------------------------------------------------------

async def check_connection(binding: ModelBinding, timeout: float = 5.0) -> bool:
    """Quick reachability check: Ollama /api/tags, OpenAI-family /models."""
    if binding.provider == "ollama":
        url = f"{base_url(binding)}/api/tags"
        headers: dict[str, str] = {}
    else:
        if not binding.api_key:
            return False
        url = f"{base_url(binding)}/models"
        headers = {"Authorization": f"Bearer {binding.api_key}"}
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url, headers=headers)
            resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.info("connection check failed provider=%s url=%s: %s", binding.provider, url, e)
        return False
    return True


async def list_models(
    provider: ModelProvider, endpoint: str = "", timeout: float = 5.0
) -> list[str]:
    """Installed models for Ollama; a static list for the OpenAI family."""
    if provider != "ollama":
        return list(OPENAI_MODELS)
    url = f"{(endpoint or DEFAULT_ENDPOINTS['ollama']).rstrip('/')}/api/tags"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url)
            resp.raise_for_status()
        return [m["name"] for m in resp.json().get("models", [])]
    except (httpx.HTTPError, ValueError, KeyError, AttributeError) as e:
        logger.warning("Failed to fetch Ollama models from %s: %s", url, e)
        return []


# ---------------------------------------------------------------------------
# EchoChat: replies with the last transcript entry; no network calls
# ---------------------------------------------------------------------------

class EchoChat:
    """Returns the last transcript message's content as the reply.

    Lets you watch a roundtable run end-to-end without a running model.
    """

    async def __call__(self, binding: ModelBinding, transcript: list[ChatMessage]) -> str:
        logger.debug("EchoChat model=%s messages=%d", binding.model, len(transcript))
        if not transcript:
            return ""
        return transcript[-1].content


# ---------------------------------------------------------------------------
# LLMError: raised by HttpChat for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the chat backend cannot be reached or returns an error."""

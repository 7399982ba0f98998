"""OpenAI-compatible chat-completion client for drafting tool calls.

The editing agent needs one ``{"toolCalls": [...], "reasoning": ...}``
object per attempt, so requests ask for JSON-object output by default.
Transient failures (429, 5xx, connection errors) are retried with
tenacity; everything that still fails surfaces as an LLMClientError,
which the agent treats like any other failed generator call.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
import tenacity

from workflow_editor.llm.errors import (
    LLMAuthError,
    LLMConfigError,
    LLMConnectionError,
    LLMRateLimitError,
    LLMResponseError,
    LLMStatusError,
)

logger = logging.getLogger(__name__)

API_KEY_ENV = "WORKFLOW_EDITOR_OPENAI_API_KEY"
BASE_URL_ENV = "WORKFLOW_EDITOR_OPENAI_BASE_URL"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"

JSON_OBJECT_FORMAT = {"type": "json_object"}

_MAX_WAIT = 30.0
_backoff = tenacity.wait_exponential(multiplier=1, min=1, max=_MAX_WAIT) + tenacity.wait_random(0, 2)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, LLMStatusError):
        return exc.transient
    return isinstance(exc, (LLMRateLimitError, LLMConnectionError))


def _wait(retry_state: tenacity.RetryCallState) -> float:
    """Honour Retry-After on 429s, capped; back off exponentially otherwise."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    if isinstance(exc, LLMRateLimitError) and exc.retry_after is not None:
        return min(exc.retry_after, _MAX_WAIT)
    return _backoff(retry_state)


def _retry_after(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.debug("Ignoring non-numeric Retry-After %r", raw)
        return None


def _check_status(response: httpx.Response) -> None:
    status = response.status_code
    if status < 400:
        return
    if status in (401, 403):
        raise LLMAuthError(f"API rejected the credentials: HTTP {status}")
    if status == 429:
        raise LLMRateLimitError(response.text, retry_after=_retry_after(response))
    raise LLMStatusError(status, response.text)


def message_content(completion: dict) -> str:
    """Return the first choice's message text; a null content becomes ``""``.

    Raises:
        LLMResponseError: ``completion`` is not a chat-completion body.
    """
    try:
        return completion["choices"][0]["message"].get("content") or ""
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise LLMResponseError(f"No message in chat completion: {completion!r}") from exc


class OpenAIClient:
    """Chat-completion client for any OpenAI-compatible endpoint.

    The key and base URL come from the arguments, then from
    ``WORKFLOW_EDITOR_OPENAI_API_KEY`` / ``WORKFLOW_EDITOR_OPENAI_BASE_URL``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = DEFAULT_MODEL,
        timeout: float = 120.0,
        max_retries: int = 3,
    ) -> None:
        api_key = api_key or os.environ.get(API_KEY_ENV, "")
        if not api_key:
            raise LLMConfigError(f"No API key: pass api_key= or set {API_KEY_ENV}")
        base_url = (base_url or os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL).rstrip("/")
        self._endpoint = f"{base_url}/chat/completions"
        self._default_model = default_model
        self._max_retries = max_retries
        self._client = httpx.Client(
            timeout=timeout, headers={"Authorization": f"Bearer {api_key}"}
        )

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_output: bool = True,
        **kwargs: Any,
    ) -> dict:
        """POST a chat completion and return the decoded body.

        With ``json_output`` the request sets ``response_format`` to a JSON
        object; the messages must then mention JSON, as the editing prompt
        does. Extra keyword arguments go into the request body unchanged.
        """
        payload: dict[str, Any] = {"model": model or self._default_model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if json_output:
            payload["response_format"] = JSON_OBJECT_FORMAT
        payload.update(kwargs)

        retrying = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_transient),
            wait=_wait,
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(self._post, payload)

    def _post(self, payload: dict[str, Any]) -> dict:
        try:
            response = self._client.post(self._endpoint, json=payload)
        except httpx.TransportError as exc:
            raise LLMConnectionError(f"Request to {self._endpoint} failed: {exc}") from exc
        _check_status(response)
        try:
            body = response.json()
        except ValueError as exc:
            raise LLMResponseError(f"Chat completion is not JSON: {response.text[:200]}") from exc
        if not isinstance(body, dict) or not body.get("choices"):
            raise LLMResponseError(f"Chat completion has no choices: {body!r}")
        return body

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> OpenAIClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

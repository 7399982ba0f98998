"""ChatGenerator: adapts an LLMClient to the EditGenerator protocol."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from workflow_editor.llm.client import message_content

if TYPE_CHECKING:
    from workflow_editor.llm.protocols import LLMClient

logger = logging.getLogger(__name__)


class ChatGenerator:
    """Calls a chat-completion client with the system prompt first.

    Asks the client for JSON-object output and wraps the reply text as
    ``{"response": text}``. Low temperature keeps tool calls consistent
    across retries.

    Usage::

        with OpenAIClient() as client:
            agent = WorkflowEditingAgent(ChatGenerator(client, model="gpt-4o-mini"))
    """

    def __init__(
        self,
        client: LLMClient,
        model: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 1000,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    def __call__(
        self, system_prompt: str, messages: list[dict[str, str]]
    ) -> dict[str, Any]:
        completion = self._client.chat(
            [{"role": "system", "content": system_prompt}, *messages],
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            json_output=True,
        )
        content = message_content(completion)
        logger.debug("Generator returned %d characters", len(content))
        return {"response": content}

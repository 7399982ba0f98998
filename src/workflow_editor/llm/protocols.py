"""Generator and LLM client protocols.

EditGenerator is the only collaborator the editing agent calls. Any
callable matching it works: ChatGenerator wraps an LLMClient, tests pass
scripted functions.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EditGenerator(Protocol):
    """Produces tool calls for a prompt.

    Returns ``{"response": "<json text>"}`` where the JSON text encodes
    ``{"toolCalls": [...], "reasoning": "..."}``.
    """

    def __call__(
        self, system_prompt: str, messages: list[dict[str, str]]
    ) -> dict[str, Any]:
        ...


@runtime_checkable
class LLMClient(Protocol):
    """What ChatGenerator needs from a chat-completion backend.

    ``chat`` returns an OpenAI-shaped completion body
    (``choices[0].message.content``). OpenAIClient implements this.
    """

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
        ...

    def close(self) -> None:
        ...

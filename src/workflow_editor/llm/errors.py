"""Failures of the chat-completion backend behind a generator.

Each one is a GeneratorError, so a failed API call counts as a failed
generator call wherever the editing agent handles those.
"""

from __future__ import annotations

from workflow_editor.exceptions import GeneratorError


class LLMClientError(GeneratorError):
    """The chat-completion backend could not produce a reply."""


class LLMConfigError(LLMClientError):
    """The client cannot be built, usually because no API key is set."""


class LLMAuthError(LLMClientError):
    """The API rejected the credentials."""


class LLMRateLimitError(LLMClientError):
    """The API answered 429.

    ``retry_after`` carries the Retry-After header in seconds when the
    API sent a numeric one.
    """

    def __init__(self, detail: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        suffix = f" (retry after {retry_after:g}s)" if retry_after is not None else ""
        super().__init__(f"Rate limited: {detail}{suffix}")


class LLMStatusError(LLMClientError):
    """The API answered with an error status other than auth or rate limiting."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {detail}")

    @property
    def transient(self) -> bool:
        return self.status_code >= 500


class LLMConnectionError(LLMClientError):
    """The request never reached the API or timed out."""


class LLMResponseError(LLMClientError):
    """The API answered 200 but not with a usable chat completion."""

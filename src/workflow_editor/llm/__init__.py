"""LLM integration: OpenAI-compatible client and the generator adapter."""

from workflow_editor.llm.client import OpenAIClient, message_content
from workflow_editor.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMConnectionError,
    LLMRateLimitError,
    LLMResponseError,
    LLMStatusError,
)
from workflow_editor.llm.generator import ChatGenerator
from workflow_editor.llm.protocols import EditGenerator, LLMClient

__all__ = [
    "ChatGenerator",
    "EditGenerator",
    "LLMAuthError",
    "LLMClient",
    "LLMClientError",
    "LLMConfigError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMResponseError",
    "LLMStatusError",
    "OpenAIClient",
    "message_content",
]

"""Prompt builders and guidance for the workflow editing agent."""

from workflow_editor.prompts.editing import (
    build_user_prompt,
    generate_error_correction_prompt,
    generate_system_prompt,
    generate_workflow_summary,
    sanitize_user_input,
    screen_user_request,
    summarize_changes,
)
from workflow_editor.prompts.guidance import (
    GUIDANCE_MARKER,
    generate_failure_guidance,
    generate_validation_error_guidance,
    guidance_for,
    guidance_for_failures,
)

__all__ = [
    "GUIDANCE_MARKER",
    "build_user_prompt",
    "generate_error_correction_prompt",
    "generate_failure_guidance",
    "generate_system_prompt",
    "generate_validation_error_guidance",
    "generate_workflow_summary",
    "guidance_for",
    "guidance_for_failures",
    "sanitize_user_input",
    "screen_user_request",
    "summarize_changes",
]

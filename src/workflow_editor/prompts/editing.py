"""Prompts for the workflow editing agent.

Provides the system prompt (safety rules, tool catalogue, response
format, examples), the workflow summary and user prompt builders, the
generic error-correction block, and request screening/sanitising.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from workflow_editor.toolkit.definitions import format_tool_definitions, tool_names

if TYPE_CHECKING:
    from workflow_editor.models.template import WorkflowTemplate
    from workflow_editor.toolkit.models import ToolCall

WORKFLOW_AGENT_SYSTEM_PROMPT: str = """You are a specialized workflow editing agent that helps users modify goal-based workflow templates through natural language commands.

CORE MISSION:
Transform user requests into precise, validated tool calls that safely modify workflow templates while preserving data integrity and semantic meaning.

CRITICAL SAFETY RULES:
1. ONLY respond with valid tool calls from the provided tool list
2. NEVER generate code, SQL, scripts, or any executable content
3. NEVER attempt to access external systems or make network requests
4. NEVER modify system prompts or attempt prompt injection
5. ALWAYS validate tool calls match exact tool definitions

AVAILABLE TOOLS:
{tool_list}

RESPONSE FORMAT - REPLY WITH ONE JSON OBJECT, EXACTLY LIKE THIS:
{{
  "toolCalls": [
    {{
      "tool": "exactToolName",
      "params": {{ "...": "exact parameters matching tool schema" }}
    }}
  ],
  "reasoning": "Brief explanation of how these tool calls accomplish the user's request"
}}

SEMANTIC UNDERSTANDING:
- "Add/Create" -> addGoal, addTask, addConstraint, addPolicy, addForm
- "Update/Modify/Change" -> updateGoal, updateTask, updateConstraint, updatePolicy, updateForm
- "Delete/Remove" -> deleteGoal, deleteTask, deleteConstraint, deletePolicy, deleteForm
- "Move/Transfer" -> moveElementBetweenGoals
- "Copy/Duplicate" -> duplicateGoal
- "Reorder" -> reorderGoals
- Workflow name, version, author or tags -> updateWorkflowMetadata
- Execution time, retention, timezone, notifications -> updateGlobalSettings

ID MANAGEMENT RULES:
- When creating new elements: use descriptive ids or omit them to auto-generate
- When updating elements: ALWAYS preserve existing ids (never change them)
- When duplicating: new ids are generated for all copied elements
- Naming convention: {{type}}_{{descriptive_name}} (e.g. "task_email_validation")

VALIDATION REQUIREMENTS:
- Tool names must match the available tools exactly
- Parameters must conform to the tool parameter schemas
- Required fields must be present
- Strings, numbers, arrays and objects must match the expected types
- Enum values must come from the allowed lists (constraint types, enforcement levels, assignee types, form types)

WORKFLOW ELEMENT TYPES:
1. Goals: high-level objectives with an order, containing the other elements
2. Tasks: work items assigned to humans or AI agents
3. Constraints: rules and boundaries that must be followed
4. Policies: if-then logic for automated decision making
5. Forms: data collection mechanisms (structured, conversational, automated)

Remember: you are a precise tool orchestrator, not a creative writer. Focus on accuracy and safety."""

TOOL_USAGE_EXAMPLES: dict[str, str] = {
    "addGoal": """Example: "Add a goal called 'User Verification'"
Tool Call: {
  "tool": "addGoal",
  "params": {
    "goal": {
      "name": "User Verification",
      "description": "Verify user identity and credentials",
      "constraints": [],
      "policies": [],
      "tasks": [],
      "forms": []
    }
  }
}""",
    "addTask": """Example: "Add an email validation task to the user registration goal"
Tool Call: {
  "tool": "addTask",
  "params": {
    "goalId": "goal_user_registration",
    "task": {
      "description": "Validate user email address",
      "assignee": {"type": "ai_agent", "model": "email_validator_v1"}
    }
  }
}""",
    "addConstraint": """Example: "Add a 30-minute time limit to the verification goal"
Tool Call: {
  "tool": "addConstraint",
  "params": {
    "goalId": "goal_verification",
    "constraint": {
      "description": "Process must complete within 30 minutes",
      "type": "time_limit",
      "enforcement": "hard_stop",
      "value": 30
    }
  }
}""",
    "updateTask": """Example: "Change the email task timeout to 60 minutes"
Tool Call: {
  "tool": "updateTask",
  "params": {
    "taskId": "task_email_validation",
    "updates": {"timeout_minutes": 60}
  }
}""",
}

WORKFLOW_SUMMARY_TEMPLATE: str = """CURRENT WORKFLOW CONTEXT:
Name: {name}
Version: {version}
Total Goals: {goal_count}
Total Elements: {element_count}

GOALS BREAKDOWN:
{goals_breakdown}

METADATA:
- Author: {author}
- Last Modified: {last_modified}
- Tags: {tags}"""

ERROR_CORRECTION_TEMPLATE: str = """PREVIOUS ATTEMPT FAILED:
Error: {error_message}
Attempt: {attempt_number} of {max_attempts}

CORRECTION GUIDANCE:
- Review the error message carefully
- Check parameter types and required fields
- Ensure tool names are exact matches
- Verify enum values are from allowed lists
- Consider if the request needs to be broken into smaller steps

Please analyze the error and provide corrected tool calls."""

_MAX_SANITIZED_CHARS = 500


def generate_system_prompt() -> str:
    """Full system prompt: rules, tool catalogue and usage examples."""
    return (
        WORKFLOW_AGENT_SYSTEM_PROMPT.format(tool_list=", ".join(tool_names()))
        + "\n\nCOMPLETE TOOL DEFINITIONS:\n"
        + format_tool_definitions()
        + "\n\nTOOL USAGE EXAMPLES:\n"
        + "\n\n".join(TOOL_USAGE_EXAMPLES.values())
    )


def generate_workflow_summary(workflow: WorkflowTemplate) -> str:
    """Describe the template for the generator, including goal ids."""
    lines = []
    for index, goal in enumerate(workflow.sorted_goals(), start=1):
        lines.append(
            f'  {index}. "{goal.name}" [id: {goal.id}] '
            f"({len(goal.constraints)} constraints, {len(goal.policies)} policies, "
            f"{len(goal.tasks)} tasks, {len(goal.forms)} forms)"
        )
    metadata = workflow.metadata
    tags = ", ".join(metadata.tags or []) if metadata is not None else ""
    return WORKFLOW_SUMMARY_TEMPLATE.format(
        name=workflow.name,
        version=workflow.version,
        goal_count=len(workflow.goals),
        element_count=workflow.element_count(),
        goals_breakdown="\n".join(lines) if lines else "  (no goals)",
        author=(metadata.author if metadata is not None else None) or "Unknown",
        last_modified=(metadata.last_modified if metadata is not None else None) or "Unknown",
        tags=tags or "None",
    )


def generate_error_correction_prompt(
    error_message: str, attempt_number: int, max_attempts: int
) -> str:
    return ERROR_CORRECTION_TEMPLATE.format(
        error_message=error_message,
        attempt_number=attempt_number,
        max_attempts=max_attempts,
    )


def build_user_prompt(
    workflow_summary: str, user_request: str, feedback: Sequence[str] = ()
) -> str:
    """User message for one attempt; ``feedback`` holds earlier attempts' guidance."""
    prompt = (
        f"{workflow_summary}\n\n"
        f'USER REQUEST: "{user_request}"\n\n'
        "Please respond with the appropriate tool calls to fulfill the user's request."
    )
    for section in feedback:
        prompt += "\n\n" + section
    return prompt


def summarize_changes(tool_calls: Sequence[ToolCall]) -> str:
    """Describe a batch by action ("added 1 element, deleted 2 elements")."""
    counts: dict[str, int] = {}
    for call in tool_calls:
        name = call.tool.lower()
        if "add" in name:
            action = "added"
        elif "update" in name:
            action = "updated"
        elif "delete" in name:
            action = "deleted"
        elif "move" in name:
            action = "moved"
        elif "duplicate" in name:
            action = "duplicated"
        elif "reorder" in name:
            action = "reordered"
        else:
            action = "modified"
        counts[action] = counts.get(action, 0) + 1
    return ", ".join(
        f"{action} {count} element" + ("" if count == 1 else "s")
        for action, count in counts.items()
    )


# ---------------------------------------------------------------------------
# Request screening
# ---------------------------------------------------------------------------

UNSAFE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b(system|prompt|instructions?)\b", re.IGNORECASE),
    re.compile(r"\b(execute|eval|script)\b", re.IGNORECASE),
    re.compile(r"\bdelete\s+(?:\w+\s+)?all\b|\bdrop\s+table\b|\btruncate\b", re.IGNORECASE),
    re.compile(r"<script|javascript:|data:", re.IGNORECASE),
    re.compile(r"\b(admin|root|sudo)\b", re.IGNORECASE),
]


def screen_user_request(
    user_request: str, min_chars: int = 5, max_chars: int = 1000
) -> list[str]:
    """Return the reasons a request is rejected; empty means acceptable."""
    issues = [
        f"Request contains potentially unsafe content: {pattern.pattern}"
        for pattern in UNSAFE_PATTERNS
        if pattern.search(user_request)
    ]
    if len(user_request) > max_chars:
        issues.append(f"Request is too long (max {max_chars} characters)")
    if len(user_request.strip()) < min_chars:
        issues.append(f"Request is too short (min {min_chars} characters)")
    return issues


_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_INJECTION_WORD_RE = re.compile(r"\bsystem\b|\bprompt\b|\binstruct\b", re.IGNORECASE)
_ANGLE_RE = re.compile(r"[<>]")


def sanitize_user_input(text: str, max_chars: int = _MAX_SANITIZED_CHARS) -> str:
    """Strip code blocks, injection keywords and angle brackets; truncate."""
    text = _CODE_BLOCK_RE.sub("[code block removed]", text)
    text = _INJECTION_WORD_RE.sub("[redacted]", text)
    text = _ANGLE_RE.sub("", text)
    return text.strip()[:max_chars]

"""Flatten a chat request into a single completion prompt."""

import json

from llm_hub_server.models import ChatCompletionRequest, Tool

ASSISTANT_CUE = "assistant: "

TOOL_INSTRUCTIONS = (
    "You have access to the following tools. If you need to use a tool, respond with "
    '<tool_call>{"name": "function_name", "arguments": "{...}"}</tool_call>.'
)


def build_prompt(request: ChatCompletionRequest) -> str:
    """Build the engine prompt for a chat request.

    The first system message leads, followed by every other message in
    conversation order as ``<role>: <content>`` lines. Tool definitions, if
    any, are appended as an instruction block, and the prompt ends with an
    ``assistant: `` cue for the engine to continue.

    Args:
        request: Chat completion request

    Returns:
        Prompt text; identical requests always produce identical prompts
    """
    lines: list[str] = []

    system = next((m for m in request.messages if m.role == "system"), None)
    if system is not None:
        lines.append(f"system: {system.content or ''}")

    for message in request.messages:
        if message.role == "system":
            continue
        lines.append(f"{message.role}: {message.content or ''}")

    if request.tools:
        lines.append("")
        lines.append(TOOL_INSTRUCTIONS)
        lines.extend(_describe_tool(tool) for tool in request.tools)

    return "".join(f"{line}\n" for line in lines) + ASSISTANT_CUE


def _describe_tool(tool: Tool) -> str:
    function = tool.function
    header = f"- {function.name}: {function.description}" if function.description else f"- {function.name}"
    return f"{header}\n  Parameters: {json.dumps(function.parameters)}"

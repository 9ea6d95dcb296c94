"""Extraction of tagged tool calls from generated text."""

import re
import uuid

from pydantic import ValidationError

from llm_hub_server.models import FunctionCall, ToolCall
from llm_hub_server.utils import get_logger

logger = get_logger(__name__)

TOOL_CALL_PATTERN = re.compile(r"<tool_call>(.*?)</tool_call>", re.DOTALL)


def extract_tool_calls(text: str) -> list[ToolCall] | None:
    """Parse ``<tool_call>{...}</tool_call>`` blocks out of model output.

    Blocks whose body is not a valid ``{"name", "arguments"}`` object are
    dropped individually.

    Args:
        text: Complete generated text

    Returns:
        Parsed calls, or None when no block parses
    """
    calls: list[ToolCall] = []
    for match in TOOL_CALL_PATTERN.finditer(text):
        body = match.group(1).strip()
        try:
            function = FunctionCall.model_validate_json(body)
        except ValidationError as e:
            logger.warning("tool_call.parse_failed", body=body[:200], errors=e.error_count())
            continue
        calls.append(ToolCall(id=new_call_id(), type="function", function=function))

    if not calls:
        return None

    logger.debug("tool_call.extracted", count=len(calls), names=[c.function.name for c in calls])
    return calls


def new_call_id() -> str:
    """Generate a tool call id."""
    return f"call_{uuid.uuid4().hex[:8]}"

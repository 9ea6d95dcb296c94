"""Core processing modules."""

from llm_hub_server.core.integrity import is_model_file_valid
from llm_hub_server.core.prompt import build_prompt
from llm_hub_server.core.tool_calls import extract_tool_calls

__all__ = [
    "build_prompt",
    "extract_tool_calls",
    "is_model_file_valid",
]

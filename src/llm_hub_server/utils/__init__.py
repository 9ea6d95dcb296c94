"""Utility functions package."""

from llm_hub_server.utils.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]

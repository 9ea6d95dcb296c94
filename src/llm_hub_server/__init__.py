"""LLM Hub Server - OpenAI-compatible gateway for on-device models."""

__version__ = "0.1.0"

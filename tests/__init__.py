"""Test suite for llm_hub_server."""

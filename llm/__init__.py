"""LLM integration module for catalog categorization."""

from llm.factory import get_llm_provider

__all__ = ["get_llm_provider"]

"""LLM provider integration for DSO."""

from dso.llm.base import BaseProvider
from dso.llm.manager import create_provider
from dso.llm.parser import ReasoningStep, TransformResult, parse_response, split_reasoning_steps

__all__ = [
    "BaseProvider",
    "ReasoningStep",
    "TransformResult",
    "create_provider",
    "parse_response",
    "split_reasoning_steps",
]

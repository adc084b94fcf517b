"""Parsing of raw provider text into reasoning and rewritten segments.

Providers are asked to answer in a two-section format::

    ---REASONING---
    <analysis>
    ---REWRITTEN---
    <final text>

Nothing guarantees the model follows it, so parsing never fails: when either
marker is missing the whole text becomes the output and the reasoning is a
placeholder saying why no trace is available.
"""

import re
from dataclasses import dataclass

from dso.config.constants import (
    NATIVE_REASONING_PLACEHOLDER,
    NO_REASONING_PLACEHOLDER,
    REASONING_MARKER,
    REWRITTEN_MARKER,
)

# Step markers at line start: "1.", "-" or "*" followed by whitespace
_STEP_PATTERN = re.compile(r"(?:^|\n)(\d+\.|-|\*)\s+")


@dataclass(frozen=True)
class TransformResult:
    """Structured result of one transform call."""

    reasoning: str
    output: str


@dataclass(frozen=True)
class ReasoningStep:
    """One step of a structured reasoning segment."""

    marker: str
    content: str


def parse_response(text: str, native_thinking: bool = False) -> TransformResult:
    """Split raw provider text into reasoning and output.

    Args:
        text: Raw response text
        native_thinking: Whether vendor-side reasoning was requested; only
            selects which placeholder the fallback path reports

    Returns:
        TransformResult with trimmed segments
    """
    if REASONING_MARKER in text and REWRITTEN_MARKER in text:
        before, _, after = text.partition(REWRITTEN_MARKER)
        return TransformResult(
            reasoning=before.replace(REASONING_MARKER, "").strip(),
            output=after.strip(),
        )

    placeholder = NATIVE_REASONING_PLACEHOLDER if native_thinking else NO_REASONING_PLACEHOLDER
    return TransformResult(reasoning=placeholder, output=text)


def split_reasoning_steps(reasoning: str) -> list[ReasoningStep]:
    """Split a reasoning segment into numbered or bulleted steps.

    Returns an empty list when the text has no step structure; callers then
    show it as plain paragraphs.
    """
    if not _STEP_PATTERN.search(reasoning):
        return []

    segments = _STEP_PATTERN.split(reasoning)
    steps: list[ReasoningStep] = []
    # segments = [preamble, marker1, content1, marker2, content2, ...]
    for i in range(1, len(segments) - 1, 2):
        content = segments[i + 1].strip()
        if content:
            steps.append(ReasoningStep(marker=segments[i], content=content))
    return steps

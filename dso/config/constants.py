"""Constants for DSO."""

from dso import __version__

# Application constants
APP_NAME = "dso"
APP_VERSION = __version__

# Default paths
DEFAULT_LOG_DIR = ".logs"
DEFAULT_CONFIG_FILE = "dso.yaml"
DEFAULT_OUTPUT_FILE = "DSO_Export.json"

# Pipeline defaults
DEFAULT_CONCURRENCY = 2
MAX_CONCURRENCY = 50
DEFAULT_DELAY_MS = 500
DEFAULT_MAX_RETRIES = 3
DEFAULT_TEMPERATURE = 0.7
DEFAULT_THINKING_BUDGET = 1024

# Hard deadline for one transform request (seconds)
REQUEST_TIMEOUT_SECONDS = 60

# Prompt protocol
TEXT_PLACEHOLDER = "{{text}}"
REASONING_MARKER = "---REASONING---"
REWRITTEN_MARKER = "---REWRITTEN---"

NATIVE_REASONING_PLACEHOLDER = "(Native Thinking utilized by model - internal trace)"
NO_REASONING_PLACEHOLDER = "No explicit reasoning block provided by model."

DEFAULT_SYSTEM_INSTRUCTION = f"""You are an expert conversation rewriter.
Your goal is to improve the clarity, tone, and grammar of the provided conversation snippets while retaining the original meaning.

Implement Chain of Thought (CoT) reasoning.
1. First, analyze the original text for flaws, ambiguity, or tonal issues.
2. Plan the rewriting strategy.
3. Finally, provide the rewritten version.

Output Format (Strictly follow this if not using native thinking):
{REASONING_MARKER}
[Your step-by-step analysis here]
{REWRITTEN_MARKER}
[The final rewritten text here]"""

DEFAULT_PROMPT_TEMPLATE = f"""Original Conversation:
{TEXT_PLACEHOLDER}

Please analyze and rewrite this following the system instructions."""

# LLM Providers
LLM_PROVIDERS = ["gemini", "openai", "anthropic", "mock"]

DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-5",
    "mock": "mock-rewriter-v1",
}

# Provider API key environment variable names (first match wins)
PROVIDER_API_KEY_ENV_VARS = {
    "gemini": ["GEMINI_API_KEY", "GOOGLE_API_KEY"],
    "openai": ["OPENAI_API_KEY"],
    "anthropic": ["ANTHROPIC_API_KEY"],
    "mock": [],
}

# Dataset import
ID_FORMAT = "ID-{index:05d}"
TEXT_KEYS = (
    "text",
    "original",
    "content",
    "message",
    "prompt",
    "input",
    "instruction",
    "dialogue",
    "question",
)

SAMPLE_DATASET = [
    {"id": "1", "original": "hey u there? need help with api wont work"},
    {"id": "2", "original": "customer service was bad i want refund now"},
    {"id": "3", "original": "wat time is the meeting 2moro?"},
    {"id": "4", "original": "this code is buggy fix it plz"},
    {"id": "5", "original": "tell me joke about ai"},
]

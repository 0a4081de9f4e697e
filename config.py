"""Configuration for the agent loop."""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_or_default(name: str, default: str | None) -> str | None:
    """
    Get environment variable value or default, treating empty string as unset.
    """
    value = os.getenv(name, None)
    if value is None or value == "":
        return default
    return value


def _optional_float(name: str) -> float | None:
    value = _env_or_default(name, None)
    return float(value) if value is not None else None


# Working directory the agent operates in
WORKING_DIR = Path(_env_or_default("WORKING_DIR", ".")).resolve()

# LLM Configuration
LLM_BACKEND = _env_or_default("LLM_BACKEND", "deepseek")
LLM_API_KEY = _env_or_default(
    "LLM_API_KEY",
    _env_or_default("DEEPSEEK_API_KEY", os.getenv("OPENAI_API_KEY")),
)
LLM_BASE_URL = _env_or_default("LLM_BASE_URL", None)  # None = backend default
LLM_MODEL = _env_or_default("LLM_MODEL", None)  # None = backend default
LLM_TIMEOUT = _optional_float("LLM_TIMEOUT")
LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "3"))  # Attempts per completion request

# Confirmation gate: skip all y/n prompts when enabled
AUTO_APPROVE = os.getenv("AUTO_APPROVE", "false").lower() == "true"

# Context Configuration
MAX_TOKENS = int(os.getenv("MAX_TOKENS", "6000"))
MAX_MESSAGES = int(os.getenv("MAX_MESSAGES", "20"))
TOKEN_ENCODING = os.getenv("TOKEN_ENCODING", "cl100k_base")

# Loop Configuration
MAX_STEPS = int(os.getenv("MAX_STEPS", "10"))  # Completion steps per submission
MIN_GOAL_LENGTH = int(os.getenv("MIN_GOAL_LENGTH", "20"))  # Longer inputs open a task

# Command Execution Configuration
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))  # Attempts for a failing shell command
RETRY_BASE_DELAY = float(os.getenv("RETRY_BASE_DELAY", "1.0"))  # Seconds, multiplied by attempt
COMMAND_TIMEOUT = _optional_float("COMMAND_TIMEOUT")  # None = wait until the command exits

# Optional file overriding the built-in system prompt template
SYSTEM_PROMPT_TEMPLATE = _env_or_default("SYSTEM_PROMPT_TEMPLATE", None)

# Logging Configuration
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CONSOLE_LOG_LEVEL = os.getenv("CONSOLE_LOG_LEVEL", "WARNING")
LOG_FSYNC = os.getenv("LOG_FSYNC", "false").lower() == "true"

AGENT_CONFIG = {
    "working_dir": str(WORKING_DIR),
    "auto_approve": AUTO_APPROVE,
    "max_steps": MAX_STEPS,
    "max_tokens": MAX_TOKENS,
    "max_messages": MAX_MESSAGES,
    "token_encoding": TOKEN_ENCODING,
    "max_retries": MAX_RETRIES,
    "retry_base_delay": RETRY_BASE_DELAY,
    "command_timeout": COMMAND_TIMEOUT,
    "llm_max_retries": LLM_MAX_RETRIES,
    "min_goal_length": MIN_GOAL_LENGTH,
    "model": LLM_MODEL,
    "prompt_template": SYSTEM_PROMPT_TEMPLATE,
}


def print_configuration() -> None:
    """Print current configuration settings."""
    print("\n" + "=" * 60)
    print("Configuration")
    print("=" * 60)

    print("\n[LLM]")
    print(f"  Backend: {LLM_BACKEND}")
    print(f"  Model: {LLM_MODEL or '(backend default)'}")
    print(f"  Base URL: {LLM_BASE_URL or '(backend default)'}")
    print(f"  API key: {'set' if LLM_API_KEY else 'NOT SET'}")

    print("\n[Loop]")
    print(f"  Working directory: {WORKING_DIR}")
    print(f"  Auto-approve: {'enabled' if AUTO_APPROVE else 'disabled'}")
    print(f"  Max steps per submission: {MAX_STEPS}")
    print(f"  Command attempts: {MAX_RETRIES} (base delay {RETRY_BASE_DELAY}s)")

    print("\n[Context]")
    print(f"  Max messages: {MAX_MESSAGES}")
    print(f"  Max tokens: {MAX_TOKENS} ({TOKEN_ENCODING})")

    print("\n[Logging]")
    print(f"  Log directory: {LOG_DIR}")
    print(f"  Log level: {LOG_LEVEL} (console: {CONSOLE_LOG_LEVEL})")
    print("=" * 60)

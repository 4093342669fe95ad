"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

# Record store: SQLite first, JSON snapshot when the DB is empty
_ROOT = Path(__file__).resolve().parent.parent.parent
AGENT_DATA_DIR: Path = Path(os.getenv("AGENT_DATA_DIR", "").strip() or _ROOT / "data")
AGENT_DB_PATH: Path = Path(os.getenv("AGENT_DB_PATH", "").strip() or AGENT_DATA_DIR / "agents.db")
AGENT_JSON_FILE: str = "agentData.json"
LOGIN_JSON_FILE: str = "agentLoginData.json"

# Identifier shapes found in questions
AGENT_ID_PATTERN: str = r"-?CHAGT\d+"
EMAIL_PATTERN: str = r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"
LOGIN_ID_PATTERN: str = r"\b(?:login\s*)?(?:ID|id)\s*(\d+)\b"

# Question validation
QUESTION_MAX_LENGTH: int = 1000
QUESTION_ALLOWED_CHARS: str = r"^[a-zA-Z0-9\s.,?!@#\-_()+\"':;/\\]+$"

# Result limits (non-list vs list intents)
DEFAULT_RESULT_LIMIT: int = 5
LIST_RESULT_LIMIT: int = 20

# Fuzzy matching thresholds
NAME_SIMILARITY_THRESHOLD: float = 0.70
COMPANY_WORD_SIMILARITY_THRESHOLD: float = 0.75
COMPANY_SIMILARITY_THRESHOLD: float = 0.65
FUZZY_MATCH_LIMIT: int = 10
ANALYTICS_LIMIT: int = 10

# Primary backend (Ollama streaming /api/generate)
OLLAMA_URL: str = os.getenv("OLLAMA_URL", "").strip()
OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "llama3.2:1b").strip() or "llama3.2:1b"
OLLAMA_NUM_PREDICT: int = 300
OLLAMA_TEMPERATURE: float = 0.7

# Secondary backend: vllm (OpenAI-style /v1/completions), ollama, or openai
FALLBACK_LLM_URL: str = os.getenv("FALLBACK_LLM_URL", "").strip()
FALLBACK_LLM_TYPE: str = os.getenv("FALLBACK_LLM_TYPE", "vllm").strip().lower() or "vllm"
FALLBACK_MODEL: str = (
    os.getenv("FALLBACK_MODEL", "meta-llama/Llama-2-7b-chat-hf").strip()
    or "meta-llama/Llama-2-7b-chat-hf"
)
FALLBACK_MAX_TOKENS: int = 500

# OpenAI (secondary backend when FALLBACK_LLM_TYPE=openai); an explicit FALLBACK_MODEL wins
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("FALLBACK_MODEL", "").strip()
    or os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip()
    or "gpt-4o-mini"
)

# Generation retry/timeout (seconds)
LLM_TIMEOUT: float = _env_float("LLM_TIMEOUT", 15.0)
LLM_MAX_RETRIES: int = _env_int("LLM_MAX_RETRIES", 1)
RETRY_BASE_DELAY: float = _env_float("RETRY_BASE_DELAY", 1.0)

# Response cache
CACHE_TTL: float = _env_float("CACHE_TTL", 300.0)
CACHE_MAX_ENTRIES: int = _env_int("CACHE_MAX_ENTRIES", 100)

"""Configuration — loads environment variables with sensible defaults.

All tunables live here. Override via .env file or environment variables.
No hardcoded thresholds/timings elsewhere in the codebase.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)

def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))

def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


# ═══════════════════════════════════════════════════════════════════════════
# Insight Generator — text-generation model (optional)
# ═══════════════════════════════════════════════════════════════════════════
# INSIGHT_PROVIDER tells the framework which SDK to use:
#   "openai"       — OpenAI SDK (also works with Gemini/DeepSeek/Ollama compat endpoints)
#   "azure_openai" — Azure OpenAI SDK
#   "anthropic"    — Anthropic SDK
# Progress tracking works without any of this; only the insight flows need it.

INSIGHT_PROVIDER = _env("INSIGHT_PROVIDER", "openai")
INSIGHT_API_KEY = _env("INSIGHT_API_KEY")
INSIGHT_MODEL = _env("INSIGHT_MODEL")        # required for insights — no default
INSIGHT_BASE_URL = _env("INSIGHT_BASE_URL")  # optional custom endpoint

AZURE_API_VERSION = _env("AZURE_API_VERSION", "2024-12-01-preview")

# Per-flow sampling settings
ANALYSIS_MAX_TOKENS = _env_int("ANALYSIS_MAX_TOKENS", 500)
WEEKLY_MAX_TOKENS = _env_int("WEEKLY_MAX_TOKENS", 800)
SUGGESTION_MAX_TOKENS = _env_int("SUGGESTION_MAX_TOKENS", 600)
ENCOURAGEMENT_MAX_TOKENS = _env_int("ENCOURAGEMENT_MAX_TOKENS", 100)
INSIGHT_TEMPERATURE = _env_float("INSIGHT_TEMPERATURE", 0.7)
SUGGESTION_TEMPERATURE = _env_float("SUGGESTION_TEMPERATURE", 0.8)
ENCOURAGEMENT_TEMPERATURE = _env_float("ENCOURAGEMENT_TEMPERATURE", 0.9)

# ═══════════════════════════════════════════════════════════════════════════
# Progress
# ═══════════════════════════════════════════════════════════════════════════

COMPLETION_RATE_WINDOW_DAYS = _env_int("COMPLETION_RATE_WINDOW_DAYS", 30)

# Recompute every active habit's snapshot once a day so "now"-dependent
# fields (current streak, completion rate) roll over at the day boundary.
# -1 disables the sweep.
RECOMPUTE_SWEEP_HOUR = _env_int("RECOMPUTE_SWEEP_HOUR", 0)

# ═══════════════════════════════════════════════════════════════════════════
# Database
# ═══════════════════════════════════════════════════════════════════════════

DB_PATH = Path(_env("HABITCORE_DB_PATH", str(_PROJECT_ROOT / "data" / "habits.db")))

# ═══════════════════════════════════════════════════════════════════════════
# Timezone (default UTC, override for your locale in .env)
# ═══════════════════════════════════════════════════════════════════════════
# Defines the user's calendar day: streaks, dedup keys and patterns all use it.

TIMEZONE_OFFSET_HOURS = _env_int("TIMEZONE_OFFSET_HOURS", 0)

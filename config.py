"""
Central configuration — reads from .env file.

Every value here is only a default: AnalysisClient takes all of its settings
as constructor arguments, and build_client() in analysis_client.py is the one
place that reads this module.
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _parse_models(raw: str | None, default: list[str]) -> list[str]:
    """Split a comma-separated model list, keeping order and dropping blanks."""
    if not raw:
        return list(default)
    models = [m.strip() for m in raw.split(",") if m.strip()]
    return models or list(default)


# ── OpenRouter ────────────────────────────────────────────────────────────────
# Leave the key unset to run fully offline: every request then goes straight
# to the local keyword fallback.
OPENROUTER_API_KEY: str | None = os.getenv("OPENROUTER_API_KEY") or None
OPENROUTER_BASE_URL: str       = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
OPENROUTER_TIMEOUT_SECS: float = float(os.getenv("OPENROUTER_TIMEOUT_SECS", "30"))

# Sent as HTTP-Referer / X-Title so OpenRouter can attribute the traffic
APP_REFERER: str = os.getenv("APP_REFERER", "https://smartheal.app")
APP_TITLE: str   = os.getenv("APP_TITLE", "SmartHeal Therapy App")

# ── Model lists (tried in order, first usable answer wins) ────────────────────
DEFAULT_ANALYSIS_MODELS = [
    "google/gemini-2.0-flash-exp:free",
    "google/learnlm-1.5-pro-experimental:free",
    "google/gemini-2.0-flash-thinking-exp:free",
]
DEFAULT_QUESTION_MODELS = [
    "google/gemini-2.0-flash-exp:free",
    "google/learnlm-1.5-pro-experimental:free",
    "mistralai/mistral-7b-instruct:free",
]

ANALYSIS_MODELS: list[str] = _parse_models(os.getenv("ANALYSIS_MODELS"), DEFAULT_ANALYSIS_MODELS)
QUESTION_MODELS: list[str] = _parse_models(os.getenv("QUESTION_MODELS"), DEFAULT_QUESTION_MODELS)

# Set to false to answer text descriptions locally without calling any model
REMOTE_TEXT_ANALYSIS: bool = os.getenv("REMOTE_TEXT_ANALYSIS", "true").strip().lower() not in ("false", "0", "no")

import os
from dotenv import load_dotenv

from core.errors import ConfigurationError

# Load environment variables from .env
load_dotenv()


def get_env_var(name: str) -> str:
    """Get environment variable or raise a clear error if missing."""
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(
            f"Missing required environment variable: {name}. "
            f"Did you copy .env.example to .env and fill in your keys?"
        )
    return value


def _float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


# Optional vars (with defaults)
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -----------------------------
# Reasoning provider
# -----------------------------
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-1.5-flash")
REASONING_MAX_ATTEMPTS = _int("REASONING_MAX_ATTEMPTS", 3)
REASONING_TIMEOUT_SECONDS = _float("REASONING_TIMEOUT_SECONDS", 30.0)
REASONING_BACKOFF_SECONDS = _float("REASONING_BACKOFF_SECONDS", 1.0)
REASONING_BACKOFF_MULTIPLIER = _float("REASONING_BACKOFF_MULTIPLIER", 2.0)

# -----------------------------
# Speech-to-text provider
# -----------------------------
DEEPGRAM_API_KEY = os.getenv("DEEPGRAM_API_KEY")
DEEPGRAM_BASE_URL = os.getenv("DEEPGRAM_BASE_URL", "https://api.deepgram.com/v1")
DEEPGRAM_MODEL = os.getenv("DEEPGRAM_MODEL", "nova-2")
TRANSCRIPTION_MAX_ATTEMPTS = _int("TRANSCRIPTION_MAX_ATTEMPTS", 2)
TRANSCRIPTION_TIMEOUT_SECONDS = _float("TRANSCRIPTION_TIMEOUT_SECONDS", 30.0)

# -----------------------------
# Locale defaults
# -----------------------------
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "INR")
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en-IN")

# -----------------------------
# Hand-tuned thresholds
# -----------------------------
ROUTER_FALLBACK_CONFIDENCE = _float("ROUTER_FALLBACK_CONFIDENCE", 0.5)
VOICE_FALLBACK_CONFIDENCE = _float("VOICE_FALLBACK_CONFIDENCE", 0.3)
VOICE_DEFAULT_CONFIDENCE = _float("VOICE_DEFAULT_CONFIDENCE", 0.7)
CLARIFICATION_THRESHOLD = _float("CLARIFICATION_THRESHOLD", 0.7)
RECEIPT_RECORD_THRESHOLD = _float("RECEIPT_RECORD_THRESHOLD", 0.7)
RECEIPT_AUTO_APPROVE_THRESHOLD = _float("RECEIPT_AUTO_APPROVE_THRESHOLD", 0.85)

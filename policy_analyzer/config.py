import os

VERSION = "4.0.0"


def _int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


def _float(name: str, default: float) -> float:
    return float(os.environ.get(name, default))


class Settings:
    """Runtime settings, read from the environment when constructed."""

    def __init__(self) -> None:
        self.llm_provider = os.environ.get("LLM_PROVIDER", "groq").lower()
        self.groq_api_key = os.environ.get("GROQ_API_KEY")
        self.groq_model = os.environ.get("GROQ_MODEL", "llama-3.3-70b-versatile")
        self.gemini_api_key = os.environ.get("GEMINI_API_KEY")
        self.gemini_model = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
        self.temperature = _float("LLM_TEMPERATURE", 0.1)

        self.ruleset_version = os.environ.get("RULESET_VERSION", "4.0")

        self.chunk_size = _int("CHUNK_SIZE", 30000)
        self.chunk_overlap = _int("CHUNK_OVERLAP", 1000)
        self.max_chunks = _int("MAX_CHUNKS", 4)

        self.extraction_max_tokens = _int("EXTRACTION_MAX_TOKENS", 8000)
        self.judgment_max_tokens = _int("JUDGMENT_MAX_TOKENS", 6000)

        self.max_retries = _int("MAX_RETRIES", 3)
        self.retry_delay_seconds = _float("RETRY_DELAY_SECONDS", 1.0)
        self.backoff_multiplier = _float("BACKOFF_MULTIPLIER", 2.0)
        self.request_timeout_seconds = _float("REQUEST_TIMEOUT_SECONDS", 55.0)

        self.cache_ttl_seconds = _int("CACHE_TTL_SECONDS", 3600)
        self.cache_max_entries = _int("CACHE_MAX_ENTRIES", 100)

        self.cors_origins = [
            o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
        ]

    @property
    def model(self) -> str:
        return self.gemini_model if self.llm_provider == "gemini" else self.groq_model


_settings = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None

import os
from pathlib import Path

# Basic settings helper to read environment configuration.

DEFAULT_DB_PATH = Path(__file__).resolve().parent / "spotclip.db"


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    return int(val)


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    return float(val)


class Settings:
    def __init__(self) -> None:
        self.OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY") or None
        self.OPENAI_VISION_MODEL: str = os.getenv("OPENAI_VISION_MODEL", "gpt-4o-mini")
        self.OPENAI_TAGGING_MODEL: str = os.getenv("OPENAI_TAGGING_MODEL", "gpt-4o-mini")
        self.MODEL_TIMEOUT_SECONDS: float = _as_float(os.getenv("MODEL_TIMEOUT_SECONDS"), 30.0)
        self.MODEL_MAX_RETRIES: int = _as_int(os.getenv("MODEL_MAX_RETRIES"), 2)
        self.VISION_MAX_TOKENS: int = _as_int(os.getenv("VISION_MAX_TOKENS"), 1024)
        self.VISION_IMAGE_DETAIL: str = os.getenv("VISION_IMAGE_DETAIL", "low")
        self.COLLECTION_STORE: str = os.getenv("COLLECTION_STORE", "memory").lower()
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DEFAULT_DB_PATH}")
        self.SEED_DEMO_DATA: bool = _as_bool(os.getenv("SEED_DEMO_DATA"), False)
        self.MAX_MEDIA_FILES: int = _as_int(os.getenv("MAX_MEDIA_FILES"), 10)
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()

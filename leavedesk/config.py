# leavedesk/config.py
# Minimal env-driven config; values come from the environment or a local .env file.
import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    # accepts "1","true","yes" (case-insensitive)
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _csv(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


class Settings:
    # "memory" or "mongo"
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "memory").lower()
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017/")
    DB_NAME: str = os.getenv("DB_NAME", "leave_desk")
    SEED_DEMO_DATA: bool = _flag("SEED_DEMO_DATA", "true")
    # reads raise StorageError instead of answering empty
    STRICT_READS: bool = _flag("STRICT_READS")
    # approve/reject only from pending
    ENFORCE_PENDING_TRANSITIONS: bool = _flag("ENFORCE_PENDING_TRANSITIONS")
    HR_EMAILS: List[str] = _csv("HR_EMAILS")
    API_PREFIX: str = os.getenv("API_PREFIX", "").rstrip("/")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    # used by the client / UI
    API_URL: str = os.getenv("API_URL", "http://127.0.0.1:8000")


# module-level settings object (imported elsewhere as `from .config import settings`)
settings = Settings()

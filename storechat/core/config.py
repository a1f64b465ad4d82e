"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Process-wide values are captured once into a frozen Settings object
at startup and injected into the app; nothing mutates them afterwards.
"""

import os
import tempfile
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

# Credential: request header name and server-side fallback (from env)
API_KEY_HEADER: str = "x-gemini-api-key"
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "").strip()

# Generation model used by the chat orchestrator
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash").strip() or "gemini-2.5-flash"

# Staging area for uploaded bytes before they are sent to the backend
STAGING_DIR: str = os.getenv("STAGING_DIR", "").strip() or tempfile.gettempdir()
STAGED_SUFFIX: str = ".upload"

# Ingestion polling (seconds). Poll interval matches the backend's LRO cadence.
INGEST_POLL_INTERVAL: float = float(os.getenv("INGEST_POLL_INTERVAL", "1.0"))
INGEST_MAX_WAIT: float = float(os.getenv("INGEST_MAX_WAIT", "300.0"))

# Upload limits and MIME policy
MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(100 * 1024 * 1024)))
DEFAULT_MIME_TYPE: str = "text/plain"
OPAQUE_MIME_TYPES: frozenset[str] = frozenset({"", "application/octet-stream"})

# Stores and files
DEFAULT_STORE_NAME: str = "New Store"
FILES_PAGE_SIZE: int = 100

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"


@dataclass(frozen=True)
class Settings:
    """Read-only process configuration, built once at startup."""

    fallback_api_key: str = ""
    model: str = GEMINI_MODEL
    staging_dir: str = STAGING_DIR
    poll_interval: float = INGEST_POLL_INTERVAL
    max_wait: float = INGEST_MAX_WAIT
    max_upload_bytes: int = MAX_UPLOAD_BYTES


def load_settings() -> Settings:
    """Snapshot the environment-derived constants into a Settings object."""
    return Settings(
        fallback_api_key=GEMINI_API_KEY,
        model=GEMINI_MODEL,
        staging_dir=STAGING_DIR,
        poll_interval=INGEST_POLL_INTERVAL,
        max_wait=INGEST_MAX_WAIT,
        max_upload_bytes=MAX_UPLOAD_BYTES,
    )

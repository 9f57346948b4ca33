from pathlib import Path
from typing import List, Optional
import os
import sys


def default_data_dir() -> Path:
    """Per-user application data directory (where the desktop database lives)."""
    if sys.platform == "win32":
        base = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / "notekeeper"


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        # Cloud relational store (both required, otherwise local-only mode)
        self.CLOUD_DATABASE_URL: Optional[str] = os.getenv("NOTEKEEPER_CLOUD_URL") or None
        self.CLOUD_ACCESS_KEY: Optional[str] = os.getenv("NOTEKEEPER_CLOUD_KEY") or None

        # Image object storage
        self.IMAGE_BUCKET = os.getenv("NOTEKEEPER_IMAGE_BUCKET", "note-images")
        self.IMAGE_BASE_URL: Optional[str] = os.getenv("NOTEKEEPER_IMAGE_BASE_URL") or None
        self.AWS_REGION = os.getenv("AWS_REGION", "us-east-1")

        # Desktop host process
        self.DESKTOP_MODE = os.getenv("NOTEKEEPER_DESKTOP", "false").lower() == "true"
        self.DATA_DIR = Path(os.getenv("NOTEKEEPER_DATA_DIR") or default_data_dir())

        # Local embedded store snapshot file (in-memory only when unset)
        self.LOCAL_STORAGE_PATH: Optional[str] = os.getenv("NOTEKEEPER_LOCAL_STORE") or None

        # Autosave / search timing, in seconds
        self.AUTOSAVE_DELAY = float(os.getenv("NOTEKEEPER_AUTOSAVE_DELAY", "1.0"))
        self.SAVING_INDICATOR_MIN = float(os.getenv("NOTEKEEPER_SAVING_MIN", "0.5"))
        self.SEARCH_DELAY = float(os.getenv("NOTEKEEPER_SEARCH_DELAY", "0.3"))

        # CORS
        self.ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173")

        # Application
        self.APP_TITLE = "Notekeeper"
        self.DEBUG = os.getenv("DEBUG", "false").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def CLOUD_ENABLED(self) -> bool:
        return bool(self.CLOUD_DATABASE_URL and self.CLOUD_ACCESS_KEY)

    @property
    def desktop_db_path(self) -> Path:
        return self.DATA_DIR / "notes.db"

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]


settings = Settings()

# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from typing import List
from pathlib import Path

class Settings(BaseSettings):
    # Remote document store
    # "json" writes one file per collection under data_dir; "sqlite" uses db_url;
    # "memory" keeps documents in-process (no durability).
    storage_backend: str = "json"
    data_dir: str = "data"
    db_url: str = "sqlite:///data/desk_sync.db"

    # Load canonical assets from the document store's "assets" collection on startup
    seed_library_from_store: bool = True

    # ===== Remote persistence (coaching desk writes) =====
    remote_persist_enabled: bool = True
    # Background writer threads
    remote_persist_workers: int = 2
    # Attempts per write before it is parked in the outbox
    remote_persist_max_attempts: int = Field(default=3, ge=1)
    # Upper bound of the exponential backoff between attempts (seconds)
    remote_persist_retry_wait_max: float = 4.0

    # Library search
    search_default_limit: int = Field(default=50, ge=1)
    search_max_limit: int = Field(default=500, ge=1)
    # Short-lived search cache; cleared on every library change
    search_cache_ttl_seconds: float = 5.0

    # CORS settings
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    log_level: str = "INFO"

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance

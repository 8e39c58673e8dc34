"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_optional_int(name: str, default: str) -> Optional[int]:
    value = os.getenv(name, default).strip()
    return int(value) if value else None


def _env_list(name: str) -> List[str]:
    value = os.getenv(name, "")
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", "false"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    allowed_origins: List[str] = field(default_factory=lambda: _env_list("ALLOWED_ORIGINS"))

    # Storage
    # Empty = memory only
    store_persist_path: str = field(default_factory=lambda: os.getenv("STORE_PERSIST_PATH", ""))
    seed_sample_data: bool = field(default_factory=lambda: _env_bool("SEED_SAMPLE_DATA", "true"))

    # Scoring
    report_points: int = field(default_factory=lambda: int(os.getenv("REPORT_POINTS", "50")))
    confirmation_threshold: int = field(
        default_factory=lambda: int(os.getenv("CONFIRMATION_THRESHOLD", "3"))
    )

    # Identity: reports without an X-User-Id header are attributed here
    default_user_id: Optional[int] = field(
        default_factory=lambda: _env_optional_int("DEFAULT_USER_ID", "4")
    )

    # Output
    reports_dir: str = field(default_factory=lambda: os.getenv("REPORTS_DIR", "./reports"))

    # Realtime
    event_queue_size: int = field(default_factory=lambda: int(os.getenv("EVENT_QUEUE_SIZE", "100")))

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "allowed_origins": list(self.allowed_origins),
            "store_persist_path": self.store_persist_path,
            "seed_sample_data": self.seed_sample_data,
            "report_points": self.report_points,
            "confirmation_threshold": self.confirmation_threshold,
            "default_user_id": self.default_user_id,
            "reports_dir": self.reports_dir,
            "event_queue_size": self.event_queue_size,
        }

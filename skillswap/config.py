"""Configuration management for SkillSwap."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    return int(os.getenv(name) or 0) or None


@dataclass
class Config:
    """Application configuration."""

    # Hosted backend
    supabase_url: str = field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    supabase_key: str = field(default_factory=lambda: os.getenv("SUPABASE_KEY", ""))
    request_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
    )

    # Discord
    discord_token: str = field(default_factory=lambda: os.getenv("DISCORD_TOKEN", ""))
    discord_guild_id: Optional[int] = field(
        default_factory=lambda: _optional_int("DISCORD_GUILD_ID")
    )

    # Query cache
    cache_default_ttl_seconds: float = field(
        default_factory=lambda: float(os.getenv("CACHE_DEFAULT_TTL_SECONDS", "300"))
    )

    # Matching
    match_threshold: float = field(
        default_factory=lambda: float(os.getenv("MATCH_THRESHOLD", "0.4"))
    )
    match_limit: int = field(default_factory=lambda: int(os.getenv("MATCH_LIMIT", "10")))

    # Notifications
    scheduler_interval_seconds: int = field(
        default_factory=lambda: int(os.getenv("SCHEDULER_INTERVAL_SECONDS", "60"))
    )

    # Commands
    command_rate_limit: int = field(
        default_factory=lambda: int(os.getenv("COMMAND_RATE_LIMIT", "5"))
    )
    command_rate_window_seconds: int = field(
        default_factory=lambda: int(os.getenv("COMMAND_RATE_WINDOW_SECONDS", "60"))
    )

    # Data
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", "data"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def validate(self, require_bot: bool = True) -> list[str]:
        """Validate configuration. Returns list of errors."""
        errors = []
        if not self.supabase_url:
            errors.append("SUPABASE_URL is required")
        if not self.supabase_key:
            errors.append("SUPABASE_KEY is required")
        if require_bot and not self.discord_token:
            errors.append("DISCORD_TOKEN is required")
        if self.match_threshold < 0 or self.match_threshold > 1:
            errors.append("MATCH_THRESHOLD must be between 0 and 1")
        if self.match_limit <= 0:
            errors.append("MATCH_LIMIT must be positive")
        if self.cache_default_ttl_seconds <= 0:
            errors.append("CACHE_DEFAULT_TTL_SECONDS must be positive")
        if self.scheduler_interval_seconds <= 0:
            errors.append("SCHEDULER_INTERVAL_SECONDS must be positive")
        return errors


# Global config instance
config = Config()

"""
Application Configuration

Settings for the EcoScan backend, read from the environment (or a .env file)
through pydantic-settings: database, JWT verification, scan session timings,
ledger retry policy and read-model sizes.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    DATABASE_URL and SECRET_KEY have no default and must be provided;
    everything else can be overridden per environment.
    """

    # Database
    DATABASE_URL: str  # e.g. postgresql://ecoscan:secret@db:5432/ecoscan

    # Auth
    SECRET_KEY: str  # JWT signing key shared with the auth provider (required)
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None  # Verified only when set
    JWT_EXPIRATION: int = 3600  # Lifetime of tokens minted by create_access_token

    # Scan session timings (seconds)
    SCAN_FALLBACK_TIMEOUT: float = 3.0  # No detection within this window -> demo product
    SCAN_SETTLE_DELAY: float = 2.0  # "Scanned!" confirmation before resolving
    SCAN_NAVIGATE_DELAY: float = 1.5  # Credited -> leave the scan view

    # Reward ledger
    LEDGER_MAX_ATTEMPTS: int = 5  # Optimistic concurrency retries per credit
    LEDGER_RETRY_BACKOFF: float = 0.05  # Multiplied by the attempt number

    # Read models
    LEADERBOARD_LIMIT: int = 50
    DASHBOARD_WINDOW_DAYS: int = 7
    DASHBOARD_RECENT_SCANS: int = 5
    PROFILE_RECENT_SCANS: int = 10

    # Local camera detector
    CAMERA_DEVICE_INDEX: int = 0
    CAMERA_FPS: int = 10

    # Application
    API_VERSION: str = "v1"  # mounted at /api/{API_VERSION}
    PROJECT_NAME: str = "EcoScan Rewards API"  # Project name for docs
    DEBUG: bool = False  # echo SQL
    SEED_DEMO_DATA: bool = True  # Seed catalog, challenges and rewards when empty
    LOGS_DIR: str = "/app/logs"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)


settings = Settings()

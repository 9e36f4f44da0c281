"""
Configuration Management for Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CATEGORIES = (
    "Food,Groceries,Transport,Housing,Utilities,Healthcare,"
    "Entertainment,Shopping,Education,Travel,Other"
)


class GatewaySettings(BaseSettings):
    """REST backend connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the expense REST service"
    )
    # Static credential attached to every request
    username: str = Field(
        default="admin",
        description="HTTP Basic username for API access"
    )
    password: str = Field(
        default="admin",
        description="HTTP Basic password for API access"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="Per-request timeout in seconds"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are joined with a leading slash."""
        v = v.strip()
        if not v:
            raise ValueError("base_url must not be empty")
        return v.rstrip("/")


class SessionSettings(BaseSettings):
    """Persisted session (current user) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    storage_path: str = Field(
        default=".expense_tracker/session.json",
        description="Path of the JSON file holding the session slot"
    )
    storage_key: str = Field(
        default="user",
        min_length=1,
        description="Key of the slot that holds the current user"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False for console output)"
    )

    # Domain data
    expense_categories: str = Field(
        default=DEFAULT_CATEGORIES,
        description="Comma-separated list of expense category labels"
    )
    currency_symbol: str = Field(
        default="₹",
        description="Currency symbol used for display"
    )
    export_filename_prefix: str = Field(
        default="expenses_export",
        min_length=1,
        description="Prefix of exported CSV file names"
    )

    # Validation thresholds
    max_expense_amount: float = Field(
        default=1000000.0,
        description="Maximum reasonable expense amount (for sanity checking)"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future an expense date can be"
    )

    # View layer
    refresh_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts when the user retries a failed refresh"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def categories_list(self) -> list[str]:
        """Get categories as a list, preserving configured order."""
        seen: list[str] = []
        for raw in self.expense_categories.split(","):
            label = raw.strip()
            if label and label not in seen:
                seen.append(label)
        return seen


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def gateway(self) -> GatewaySettings:
        return GatewaySettings()

    @property
    def session(self) -> SessionSettings:
        return SessionSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<setting_name>_error" entry for each invalid one.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("gateway", "session", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results

import os
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from amount import RoundingPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PAYMENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Amount ingestion
    rounding: RoundingPolicy = RoundingPolicy.TRUNCATE

    # Logging settings
    log_level: str = "WARNING"
    log_format: str = "%(levelname)s: %(message)s"

    # Print "Processed: N, Skipped: M" to stderr after a run
    report_stats: bool = True


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    PAYMENTS_ENV picks a preset (development, production, testing); unset or
    unknown values fall back to the base defaults. Individual PAYMENTS_*
    variables still override the preset.
    """
    return get_settings_for_environment(os.environ.get("PAYMENTS_ENV", ""))


class DevelopmentSettings(Settings):
    log_level: str = "DEBUG"


class ProductionSettings(Settings):
    log_level: str = "WARNING"
    report_stats: bool = False


class TestingSettings(Settings):
    log_level: str = "WARNING"
    report_stats: bool = False


def get_settings_for_environment(env: str = "development") -> Settings:
    """Get settings for specific environment."""
    settings_map = {
        "development": DevelopmentSettings,
        "production": ProductionSettings,
        "testing": TestingSettings,
    }

    settings_class = settings_map.get(env.lower(), Settings)
    return settings_class()

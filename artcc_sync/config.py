"""
Configuration management for ARTCC Sync.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase. Values are read once at process start.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class VatsimConfig:
    """VATSIM network feed endpoints."""
    data_url: str = os.getenv('VATSIM_DATA_URL', 'https://data.vatsim.net/v3/vatsim-data.json')
    metar_url: str = os.getenv('VATSIM_METAR_URL', 'https://metar.vatsim.net')


@dataclass(frozen=True)
class WeatherConfig:
    """Aviation Weather Center report feed."""
    pirep_url: str = os.getenv(
        'PIREP_URL',
        'https://www.aviationweather.gov/cgi-bin/json/AirepJSON.php',
    )


@dataclass(frozen=True)
class AccountingConfig:
    """Facility API used for controller hour accounting."""
    api_url: Optional[str] = os.getenv('ZAB_API_URL') or None
    api_key: Optional[str] = os.getenv('ZAB_API_KEY') or None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url)


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration."""
    url: str = os.getenv('DATABASE_URL', 'sqlite:///artcc_sync.db')


@dataclass(frozen=True)
class RedisConfig:
    """Active-set cache and pub/sub connection."""
    url: str = os.getenv('REDIS_URI', 'redis://localhost:6379/0')


@dataclass(frozen=True)
class PollingConfig:
    """Poll cadence, timeouts and key lifetimes."""
    interval_seconds: int = int(os.getenv('POLL_INTERVAL_SECONDS', '15'))
    report_interval_seconds: int = int(os.getenv('REPORT_INTERVAL_SECONDS', '120'))
    fetch_timeout_seconds: float = float(os.getenv('FETCH_TIMEOUT_SECONDS', '10'))

    # ~4x the fast cadence so one missed poll does not fire a leave storm
    active_set_ttl_seconds: int = 65
    flight_record_ttl_seconds: int = 300
    report_retention_hours: int = 2


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    vatsim: VatsimConfig
    weather: WeatherConfig
    accounting: AccountingConfig
    database: DatabaseConfig
    redis: RedisConfig
    polling: PollingConfig

    # Flask settings
    secret_key: str
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        vatsim=VatsimConfig(),
        weather=WeatherConfig(),
        accounting=AccountingConfig(),
        database=DatabaseConfig(),
        redis=RedisConfig(),
        polling=PollingConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()

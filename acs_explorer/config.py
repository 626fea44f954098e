"""
Configuration Management for ACS Explorer
Uses Pydantic Settings for type-safe configuration with environment variable support
"""
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DATA_DIR = Path.home() / ".acs-explorer"

# file names inside the data dir
DB_FILE = "vars.db"
INDEX_FILE = "vars.idx"


class DatabaseSettings(BaseSettings):
    """Catalog database configuration"""
    url: str = Field(f"sqlite:///{DEFAULT_DATA_DIR / DB_FILE}", alias='DATABASE_URL')
    echo: bool = Field(False, alias='DB_ECHO')
    pool_pre_ping: bool = True

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')


class CensusSettings(BaseSettings):
    """Census API configuration"""
    base_url: str = Field('https://api.census.gov/data/', alias='CENSUS_API_URL')
    api_key: Optional[str] = Field(None, alias='CENSUS_API_KEY')

    sleep_sec: float = Field(0.2, alias='API_SLEEP_SEC')
    timeout: int = Field(60, alias='API_TIMEOUT')
    retries: int = Field(3, alias='API_RETRIES')
    backoff: float = Field(0.7, alias='API_BACKOFF')

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        # urljoin drops the last path segment without a trailing slash
        return v if v.endswith('/') else v + '/'


class RefreshSettings(BaseSettings):
    """Year range covered by a catalog refresh (inclusive on both ends)"""
    start_year: int = Field(2009, alias='ACS_START_YEAR')
    end_year: Optional[int] = Field(None, alias='ACS_END_YEAR')

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    @property
    def last_year(self) -> int:
        if self.end_year is not None:
            return self.end_year
        return datetime.now().year - 1

    @property
    def years(self) -> range:
        return range(self.start_year, self.last_year + 1)


class AppSettings(BaseSettings):
    """Main application settings"""
    data_dir: Path = Field(DEFAULT_DATA_DIR, alias='ACS_DATA_DIR')
    index_file: str = Field(INDEX_FILE, alias='ACS_INDEX_FILE')
    log_level: str = Field('INFO', alias='LOG_LEVEL')
    log_file_path: str = Field('acs_explorer.log', alias='LOG_FILE_PATH')

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f'log_level must be one of {valid_levels}')
        return v

    @property
    def index_path(self) -> Path:
        return self.data_dir / self.index_file

    @property
    def log_path(self) -> Path:
        path = Path(self.log_file_path)
        return path if path.is_absolute() else self.data_dir / path

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')


class Settings:
    """Centralized settings manager"""
    _database: Optional[DatabaseSettings] = None
    _census: Optional[CensusSettings] = None
    _refresh: Optional[RefreshSettings] = None
    _app: Optional[AppSettings] = None

    @property
    def database(self) -> DatabaseSettings:
        if self._database is None:
            self._database = DatabaseSettings() # type: ignore
        return self._database

    @property
    def census(self) -> CensusSettings:
        if self._census is None:
            self._census = CensusSettings() # type: ignore
        return self._census

    @property
    def refresh(self) -> RefreshSettings:
        if self._refresh is None:
            self._refresh = RefreshSettings() # type: ignore
        return self._refresh

    @property
    def app(self) -> AppSettings:
        if self._app is None:
            self._app = AppSettings() # type: ignore
        return self._app


# Global settings instance
settings = Settings()

# Census API paths
CENSUS_VARS_FILE = "variables.json"

import os
from functools import lru_cache
from pydantic import BaseModel, ConfigDict, Field

DB_FILE = os.path.join(os.path.dirname(__file__), "ridepool.db")


def _env(name, default):
    return lambda: os.getenv(name, default)


class Settings(BaseModel):
    """Runtime settings, read from the environment when instantiated."""
    model_config = ConfigDict(validate_default=True)

    database_url: str = Field(default_factory=_env("DATABASE_URL", f"sqlite:///{DB_FILE}"))
    log_level: str = Field(default_factory=_env("LOG_LEVEL", "INFO"))
    notification_limit: int = Field(default_factory=_env("NOTIFICATION_LIMIT", "20"))
    notification_ttl_days: int = Field(default_factory=_env("NOTIFICATION_TTL_DAYS", "30"))
    critical_ttl_days: int = Field(default_factory=_env("CRITICAL_TTL_DAYS", "7"))
    host: str = Field(default_factory=_env("HOST", "0.0.0.0"))
    port: int = Field(default_factory=_env("PORT", "8000"))
    debug: bool = Field(default_factory=_env("DEBUG", "false"))


@lru_cache
def get_settings() -> Settings:
    return Settings()

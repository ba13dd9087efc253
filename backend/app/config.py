import logging
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # Database settings
    database_url: str = "sqlite:///./app.db"

    # Logging
    log_level: str = "INFO"

    # Notifications requested by the generation engine
    notifications_enabled: bool = True

    # Recurring templates
    default_frequency_days: int = 30

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()

def configure_logging(level: str = None):
    """Configure root logging once for the API process or a job run"""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

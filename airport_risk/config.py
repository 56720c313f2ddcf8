import pathlib
from typing import Optional

from pydantic_settings import BaseSettings

PACKAGE_DIR = pathlib.Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    DATABASE_URL: str = "sqlite+aiosqlite:///./app.db"

    DEBUG: bool = False

    LOG_LEVEL: str = "INFO"

    WEATHER_API_URL: str = "https://api.openweathermap.org/data/2.5/weather"
    WEATHER_API_KEY: str = ""
    WEATHER_API_TIMEOUT: float = 5.0

    WEATHER_CACHE_TTL: int = 600

    MAX_CONCURRENT_WEATHER_REQUESTS: int = 10

    # Unset means the bundled dataset is loaded once at startup
    WILDLIFE_FEED_URL: Optional[str] = None
    WILDLIFE_FEED_TIMEOUT: float = 10.0
    WILDLIFE_REFRESH_INTERVAL: int = 300
    WILDLIFE_DATASET_PATH: str = str(PACKAGE_DIR / "data" / "wildlife_strikes.csv")

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

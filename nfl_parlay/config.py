"""Runtime settings for the NFL Parlay toolkit."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global settings, overridable via environment (prefix NFL_PARLAY_) or .env."""

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    DATA_DIR: Path = PROJECT_ROOT / "data"
    CACHE_DIR: Path = DATA_DIR / "cache"
    GAMELOGS_FILE: Path = DATA_DIR / "gamelogs.sample.json"

    # Cache
    CACHE_TTL_SECONDS: int = 6 * 60 * 60

    # HTTP
    USER_AGENT: str = "nfl-parlay/0.1"
    REQUEST_TIMEOUT: int = 30
    REQUEST_RETRIES: int = 3
    REQUEST_BACKOFF: float = 2.0
    NFLVERSE_RELEASES_URL: str = "https://api.github.com/repos/nflverse/nflverse-data/releases"

    # Dynamic Season/Week (overridable via environment)
    CURRENT_SEASON: Optional[int] = None
    CURRENT_WEEK: Optional[int] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="NFL_PARLAY_",
        case_sensitive=False,
        extra="ignore",
    )

    def ensure_dirs(self) -> None:
        """Ensure data and cache directories exist."""
        for dir_path in [self.DATA_DIR, self.CACHE_DIR]:
            dir_path.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()

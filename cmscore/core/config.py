from pydantic_settings import BaseSettings
from typing import Optional
import os


class Settings(BaseSettings):
    # MongoDB
    # Defaults to localhost for local development
    # In docker-compose, MONGODB_URL env var will override this
    mongodb_url: str = os.getenv(
        "MONGODB_URL", "mongodb://localhost:27017/cms?authSource=admin"
    )
    mongodb_database: str = "cms"

    # Application
    debug: bool = False
    log_level: str = "INFO"
    api_prefix: str = "/api/v1"

    # Site definition cache
    cache_ttl_seconds: int = 600  # 10 minutes
    cache_max_entries: int = 1000

    # Content flows
    copy_concurrency: int = 4  # Max nodes copied in parallel by one copy
    deep_populate_depth: int = 5  # Max nesting when populating child items

    # Header carrying the acting user id (set by the auth proxy in front of the API)
    user_id_header: str = "X-User-Id"
    default_user_id: Optional[str] = None  # Used when the header is absent, e.g. local dev

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DB_URL: str = "sqlite+aiosqlite:///./catalog_admin.db"
    LOG_LEVEL: str = "INFO"

    # snapshot of the unfiltered catalog, 15 minutes
    CATALOG_SNAPSHOT_TTL_SECONDS: float = 15 * 60
    CACHE_DEFAULT_TTL_SECONDS: float = 30 * 60
    CACHE_MAX_ENTRIES: int = 128

    STOCK_BATCH_SIZE: int = 100

    SEARCH_LIMIT: int = 50
    LOCAL_RESULTS_THRESHOLD: int = 20
    REMOTE_PREFIX_LIMIT: int = 30

    SUGGESTION_LIMIT: int = 8
    SUGGESTION_MIN_LENGTH: int = 2
    SUGGESTION_TIMEOUT_SECONDS: float = 5.0

    PAGE_SIZE: int = 20

    # finished reconciliation jobs kept for status polling
    RECONCILIATION_JOB_HISTORY: int = 20

    class Config:
        env_file = ".env"

settings = Settings()

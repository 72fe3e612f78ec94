from pydantic import model_validator
from pydantic_settings import BaseSettings

_DEV_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    # Empty means "no database": reads return empty results, writes fail.
    DATABASE_URL: str = ""
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str | None = None
    SLOW_REQUEST_MS: int = 500

    # Auth
    SECRET_KEY: str = _DEV_SECRET_KEY
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    OWNER_OPEN_ID: str = ""

    CORS_ORIGINS: list[str] = ["*"]

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    ADMIN_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 100
    FEATURED_LIMIT: int = 5
    MAX_FEATURED_LIMIT: int = 10

    MAX_COMMENT_LENGTH: int = 5000

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def log_level(self) -> str:
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "DEBUG" if self.DEBUG else "INFO"

    @model_validator(mode="after")
    def _check_production(self) -> "Settings":
        """Fail fast at startup when production is missing required values."""
        if not self.is_production:
            return self
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL is required in production")
        if self.SECRET_KEY == _DEV_SECRET_KEY:
            raise ValueError("SECRET_KEY must be set in production")
        return self


settings = Settings()

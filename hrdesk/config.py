import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()


def _int_list(raw: str) -> list[int]:
    values = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if chunk.isdigit() and int(chunk) > 0:
            values.append(int(chunk))
    return values


class Settings(BaseModel):
    database_url: str = Field(
        default=os.getenv("DATABASE_URL", "sqlite+pysqlite:///./hrdesk.db")
    )
    db_pool_size: int = Field(default=int(os.getenv("DB_POOL_SIZE", "5")))
    db_max_overflow: int = Field(default=int(os.getenv("DB_MAX_OVERFLOW", "10")))
    db_pool_timeout: int = Field(default=int(os.getenv("DB_POOL_TIMEOUT", "30")))
    db_pool_recycle: int = Field(default=int(os.getenv("DB_POOL_RECYCLE", "1800")))

    log_level: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))

    # List view paging
    default_page_size: int = Field(default=int(os.getenv("DEFAULT_PAGE_SIZE", "25")))
    max_page_size: int = Field(default=int(os.getenv("MAX_PAGE_SIZE", "200")))
    page_size_options: list[int] = Field(
        default_factory=lambda: _int_list(os.getenv("PAGE_SIZE_OPTIONS", "8,10,25,50,100"))
    )

    # Query cache freshness, in seconds, per data class
    reference_ttl_seconds: float = Field(
        default=float(os.getenv("REFERENCE_TTL_SECONDS", "3600"))
    )
    config_ttl_seconds: float = Field(default=float(os.getenv("CONFIG_TTL_SECONDS", "600")))
    live_ttl_seconds: float = Field(default=float(os.getenv("LIVE_TTL_SECONDS", "120")))
    user_ttl_seconds: float = Field(default=float(os.getenv("USER_TTL_SECONDS", "300")))

    # Restore the last saved column set when a preference save fails
    preference_save_rollback: bool = Field(
        default=os.getenv("PREFERENCE_SAVE_ROLLBACK", "true").lower() in ("true", "1", "yes")
    )

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("max_page_size", "default_page_size", mode="after")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        return max(v, 1)

    class Config:
        frozen = True


settings = Settings()

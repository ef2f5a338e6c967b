import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="SKILL_LEDGER_DATABASE_URL")
    database_pool_size: int = Field(10, alias="SKILL_LEDGER_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="SKILL_LEDGER_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="SKILL_LEDGER_DATABASE_ECHO")
    clock_mode: Literal["block", "epoch"] = Field("block", alias="SKILL_LEDGER_CLOCK_MODE")
    principal_header: str = Field("X-Ledger-Principal", alias="SKILL_LEDGER_PRINCIPAL_HEADER")
    debug_endpoints: bool = Field(False, alias="SKILL_LEDGER_DEBUG_ENDPOINTS")
    log_level: str = Field("INFO", alias="SKILL_LEDGER_LOG_LEVEL")
    telemetry_log_level: str = Field("INFO", alias="SKILL_LEDGER_TELEMETRY_LOG_LEVEL")
    debug_sql: bool = Field(False, alias="SKILL_LEDGER_DEBUG_SQL")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid ledger configuration: {exc}") from exc

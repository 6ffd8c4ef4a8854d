# app/core/config.py
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache
from typing import List, Union


class Settings(BaseSettings):
    # ---- Application
    APP_NAME: str = Field("todo-app", env="APP_NAME")
    ENVIRONMENT: str = Field("dev", env="ENVIRONMENT")
    DEBUG: bool = Field(False, env="DEBUG")

    # ---- Database
    DATABASE_URL: str = Field("sqlite:///./todo.db", env="DATABASE_URL")
    SEED_DATA: bool = Field(False, env="SEED_DATA")

    # ---- Logging
    LOG_LEVEL: str = Field("INFO", env="LOG_LEVEL")
    APP_LOG_LEVEL: str = Field("DEBUG", env="APP_LOG_LEVEL")
    LOG_DIR: str = Field("logs", env="LOG_DIR")
    LOG_TO_FILE: bool = Field(True, env="LOG_TO_FILE")
    LOG_JSON_CONSOLE: bool = Field(False, env="LOG_JSON_CONSOLE")
    LOG_MAX_BYTES: int = Field(10 * 1024 * 1024, env="LOG_MAX_BYTES")
    LOG_BACKUP_COUNT: int = Field(30, env="LOG_BACKUP_COUNT")

    # Heap delta on performance entries needs tracemalloc, which slows everything down
    PERFORMANCE_TRACE_MEMORY: bool = Field(False, env="PERFORMANCE_TRACE_MEMORY")

    # ---- CORS
    CORS_ORIGINS: Union[str, List[str]] = Field(default="*", env="CORS_ORIGINS")

    class Config:
        case_sensitive = True
        env_file = ".env"
        env_file_encoding = "utf-8"

    def cors_list(self) -> List[str]:
        if isinstance(self.CORS_ORIGINS, list):
            return self.CORS_ORIGINS
        return [origin.strip() for origin in str(self.CORS_ORIGINS).split(",") if origin.strip()]

    def log_file(self, name: str) -> str:
        return f"{self.LOG_DIR.rstrip('/')}/{name}"


@lru_cache
def get_settings():
    return Settings()

settings = get_settings()

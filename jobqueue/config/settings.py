from datetime import datetime
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="jobqueue", description="Application name")
    environment: str = Field(default="development", description="Environment")
    debug: bool = Field(default=False, description="Debug mode")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./jobs.db",
        description="Database connection URL",
    )
    db_pool_size: int = Field(default=10, description="Database connection pool size")
    db_max_overflow: int = Field(default=20, description="Database max overflow connections")
    db_pool_timeout: int = Field(default=30, description="Database pool timeout in seconds")
    db_pool_recycle: int = Field(default=3600, description="Database connection recycle time in seconds")
    db_echo: bool = Field(default=False, description="Echo SQL statements")

    # Job defaults
    job_max_attempts: int = Field(
        default=24, ge=1, description="Attempts before a job is permanently failed"
    )
    job_max_runtime_s: int = Field(
        default=14400,
        ge=1,
        description="Seconds after which a worker's lock is considered stale",
    )
    job_sleep_delay_s: float = Field(
        default=5, ge=0, description="Seconds between polls when no job was found"
    )
    job_delete_failed_jobs: bool = Field(
        default=False, description="Delete jobs once they permanently fail"
    )
    job_delete_successful_jobs: bool = Field(
        default=True, description="Delete jobs once they succeed"
    )
    job_default_queue: str = Field(
        default="default", description="Queue a worker config falls back to"
    )
    job_default_priority: int = Field(
        default=50, description="Priority when neither job nor options set one, lower runs first"
    )
    job_default_wait_s: float = Field(
        default=0, ge=0, description="Seconds to delay a newly scheduled job"
    )
    job_default_wait_until: datetime | None = Field(
        default=None, description="Absolute time to run a newly scheduled job"
    )

    # Runner
    jobs_manager: str = Field(
        default="jobs:manager",
        description="Import path (module:attribute) of the application's JobManager",
    )
    jobs_pid_file: str = Field(
        default=".jobqueue.pid", description="File recording detached worker pids"
    )
    worker_process_prefix: str = Field(
        default="jobqueue-worker", description="Prefix of worker process names"
    )

    def model_post_init(self, __context) -> None:
        """Validate settings after initialization."""
        if ":" not in self.jobs_manager:
            raise ValueError(
                f"JOBS_MANAGER={self.jobs_manager} must be in 'module:attribute' form"
            )


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings."""
    return settings

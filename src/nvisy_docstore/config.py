"""Engine configuration.

Settings load from environment variables with the `NVISY_DOCSTORE_` prefix,
e.g. `NVISY_DOCSTORE_DEFAULT_CHUNK_SIZE=250`. Retry budgets are carried per
call as `RetryPolicy` values; settings only provide the defaults.
"""

from functools import lru_cache
from typing import Self

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetryPolicy(BaseModel, frozen=True):
    """Bounded retry budget with jittered exponential backoff."""

    max_attempts: int = Field(default=3, ge=1)
    """Total attempts, including the first one."""

    initial_backoff: float = Field(default=0.1, ge=0.0)
    """Delay before the first retry, in seconds."""

    max_backoff: float = Field(default=2.0, ge=0.0)
    """Upper bound on any single delay, in seconds."""

    jitter: float = Field(default=0.1, ge=0.0)
    """Maximum random delay added to each wait, in seconds."""

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        return cls(max_attempts=1)


class EngineSettings(BaseSettings):
    """Defaults and hard limits for pagination, bulk writes and mutations."""

    model_config = SettingsConfigDict(env_prefix="NVISY_DOCSTORE_", frozen=True)

    # Pagination
    default_page_size: int = Field(default=100, ge=1, description="Page size when none is given")
    max_page_size: int = Field(default=1000, ge=1, description="Largest accepted page size")

    # Bulk writes
    default_chunk_size: int = Field(default=500, ge=1, description="Writes per bulk request")
    max_chunk_size: int = Field(default=1000, ge=1, description="Largest accepted chunk size")

    # Retries
    retry_attempts: int = Field(default=3, ge=1, description="Attempts for transient failures")
    retry_initial_backoff: float = Field(default=0.1, ge=0.0, description="First retry delay")
    retry_max_backoff: float = Field(default=2.0, ge=0.0, description="Maximum retry delay")
    retry_jitter: float = Field(default=0.1, ge=0.0, description="Random delay added per retry")
    mutation_retry_attempts: int = Field(
        default=10, ge=1, description="Attempts for optimistic transaction conflicts"
    )

    # Store calls
    store_timeout: float | None = Field(
        default=10.0, gt=0.0, description="Per-call timeout in seconds; None disables"
    )

    # Cursors
    cursor_secret: SecretStr | None = Field(
        default=None, description="HMAC key for signing cursor tokens"
    )

    @model_validator(mode="after")
    def _check_limits(self) -> Self:
        if self.default_page_size > self.max_page_size:
            msg = "default_page_size must not exceed max_page_size"
            raise ValueError(msg)
        if self.default_chunk_size > self.max_chunk_size:
            msg = "default_chunk_size must not exceed max_chunk_size"
            raise ValueError(msg)
        return self

    def retry_policy(self) -> RetryPolicy:
        """Default budget for transient store failures."""
        return RetryPolicy(
            max_attempts=self.retry_attempts,
            initial_backoff=self.retry_initial_backoff,
            max_backoff=self.retry_max_backoff,
            jitter=self.retry_jitter,
        )

    def mutation_retry_policy(self) -> RetryPolicy:
        """Default budget for optimistic-concurrency conflicts."""
        return RetryPolicy(
            max_attempts=self.mutation_retry_attempts,
            initial_backoff=self.retry_initial_backoff,
            max_backoff=self.retry_max_backoff,
            jitter=self.retry_jitter,
        )


@lru_cache
def get_settings() -> EngineSettings:
    """Return the process-wide settings loaded from the environment."""
    return EngineSettings()

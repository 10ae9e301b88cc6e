"""Application settings.

Read from ``ORDERFLOW_*`` environment variables (or a ``.env`` file). Protean's
own configuration, selected by ``PROTEAN_ENV``, still decides the persistence
providers.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Also honours the deployment-wide ENVIRONMENT and PROTEAN_ENV variables
    env: str = Field(
        default="development",
        validation_alias=AliasChoices("ORDERFLOW_ENV", "ENVIRONMENT", "PROTEAN_ENV"),
    )

    jwt_secret: str = Field(default="dev-orderflow-secret-change-me-in-production")
    jwt_algorithm: str = Field(default="HS256")

    # Simulators
    simulate_latency: bool = Field(default=False)
    random_seed: int | None = Field(default=None)
    min_intent_amount: int = Field(default=50, description="Minimum intent amount, in cents")
    refund_success_rate: float = Field(default=0.95, ge=0.0, le=1.0)
    label_failure_rate: float = Field(default=0.05, ge=0.0, le=1.0)
    shipping_refund_ratio: float = Field(default=0.9, ge=0.0, le=1.0)

    log_level: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ORDERFLOW_LOG_LEVEL", "LOG_LEVEL"),
    )

    model_config = SettingsConfigDict(env_prefix="ORDERFLOW_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()

"""Application settings.

Values are read from ``QBANK_*`` environment variables (or a local ``.env``)
through Pydantic Settings so local and production deployments can differ
without code changes.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Core settings.

    - ``database_url``: SQLAlchemy URL of the item store, local SQLite by default.
    - ``bowtie_max_*``: platform default selection limits of the three bow-tie pools.
    - ``bowtie_limits_configurable``: whether authors may override those limits per item.
    """

    database_url: str = Field(
        default="sqlite:///./qbank.db", description="SQLAlchemy database URL"
    )
    log_level: str = Field(default="INFO", description="Root log level")

    default_option_count: int = Field(default=4, ge=2, description="Blank options on a new item")
    select_n_default: int = Field(default=3, ge=1, description="Default N for select_n items")

    bowtie_max_findings: int = Field(default=2, ge=1)
    bowtie_max_conditions: int = Field(default=1, ge=1)
    bowtie_max_actions: int = Field(default=2, ge=1)
    bowtie_limits_configurable: bool = Field(
        default=True, description="Allow per-item bow-tie pool limits"
    )

    default_points: int = Field(default=1, ge=0, description="Points awarded for full credit")

    model_config = {
        "env_prefix": "QBANK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached global settings instance."""

    return Settings()

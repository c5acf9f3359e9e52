"""
compliance_orchestrator.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., the assessor gateway API key).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    - Strict env-driven configuration
    - Defaults safe for local dev
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(env_prefix="CCO_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "compliance-orchestrator"
    log_level: str = "INFO"
    # "console" is easier to read locally; deployed envs ship JSON.
    log_format: Literal["json", "console"] = "json"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./compliance.db"

    # Assessor gateway (OpenAI-compatible chat completions endpoint)
    llm_base_url: str = "https://api.openai.com/v1"
    llm_api_key: str = Field(default="", repr=False)
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.2
    llm_timeout_seconds: float = 60.0

    # Website content fetch
    website_fetch_timeout_seconds: float = 15.0
    content_excerpt_chars: int = 2000

    # Orchestrator
    estimated_verification_minutes: int = 15
    use_llm_planner: bool = True
    # Upper bound for one assessor call, on top of the gateway HTTP timeout.
    step_timeout_seconds: float = 300.0

    # Policy knobs; None means the literal tables in orchestrator.report.
    component_weights: dict[str, float] | None = None
    likelihood_thresholds: dict[str, float] | None = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Complex-typed fields (weights/thresholds) are parsed from JSON env values by
# pydantic-settings, e.g. CCO_COMPONENT_WEIGHTS='{"use_case": 0.3, ...}'.

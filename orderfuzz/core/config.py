"""Core configuration for the order fuzzer."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Fuzzer settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ORDERFUZZ_",
        case_sensitive=False,
    )

    # ── App ──────────────────────────────────────────────────────────────
    app_name: str = "orderfuzz"
    app_env: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # ── Selection ────────────────────────────────────────────────────────
    fuzz_seed: int | None = None
    selection_policy: Literal["uniform", "weighted"] = "uniform"
    baseline_on_no_candidate: bool = True

    # Comma-separated mutation kind values, e.g. "order_is_cancelled,bad_fraction_overfill"
    disabled_mutations: str = ""
    mutation_weights: dict[str, float] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("mutation_weights")
    @classmethod
    def _non_negative_weights(cls, v: dict[str, float]) -> dict[str, float]:
        negative = sorted(k for k, w in v.items() if w < 0)
        if negative:
            raise ValueError(f"Mutation weights must be >= 0: {', '.join(negative)}")
        return v

    @property
    def disabled_mutation_names(self) -> set[str]:
        return {name.strip() for name in self.disabled_mutations.split(",") if name.strip()}


@lru_cache
def get_settings() -> Settings:
    """Return cached settings singleton."""
    return Settings()

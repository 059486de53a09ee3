"""
RenoHub configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from renohub.errors import ConfigurationError

# Environment variable -> (section, field). First variable set wins per field.
_ENV_SETTINGS: list[tuple[str, str, str]] = [
    ("NOTION_API_KEY", "notion", "api_key"),
    ("MILESTONES_DB_ID", "notion", "milestones_db_id"),
    ("DELIVERABLES_DB_ID", "notion", "deliverables_db_id"),
    ("PAYMENTS_DB_ID", "notion", "payments_db_id"),
    ("PAYMENT_DB_ID", "notion", "payments_db_id"),
    ("CONFIG_DB_ID", "notion", "config_db_id"),
    ("NOTION_BUDGET_DB_ID", "notion", "budget_db_id"),
    ("VENDOR_REGISTRY_DB_ID", "notion", "vendor_registry_db_id"),
    ("RENOHUB_MODEL", "llm", "model"),
    ("RENOHUB_API_KEY", "llm", "api_key"),
    ("GEMINI_API_KEY", "llm", "api_key"),
]


class NotionConfig(BaseModel):
    """Record store (Notion databases) configuration."""

    api_key: str | None = Field(default=None, description="Notion integration token")
    version: str = Field(default="2022-06-28", description="Notion-Version header")
    base_url: str = Field(default="https://api.notion.com/v1")
    milestones_db_id: str | None = None
    deliverables_db_id: str | None = None
    payments_db_id: str | None = None
    config_db_id: str | None = None
    budget_db_id: str | None = Field(default=None, description="Optional budget line items")
    vendor_registry_db_id: str | None = Field(default=None, description="Optional vendor directory")
    page_size: int = Field(default=100, ge=1, le=100)
    timeout: float = Field(default=30.0, description="Request timeout in seconds")


class LLMConfig(BaseModel):
    """Text-generation provider configuration (powered by litellm)."""

    model: str = Field(default="gemini/gemini-2.5-flash", description="Model identifier (litellm format)")
    api_key: str | None = Field(default=None, description="API key (or set env var)")
    api_base: str | None = Field(default=None, description="Custom API base URL")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=500, ge=1)
    timeout: int = Field(default=60, description="Request timeout in seconds")


class ReportConfig(BaseModel):
    """Knobs for the derived snapshot."""

    currency: str = Field(default="MYR")
    window_days: int = Field(default=30, ge=1, description="Upcoming-payment window")
    forecast_months: int = Field(default=4, ge=1, le=12)
    top_vendor_limit: int = Field(default=5, ge=1)
    vendor_basis: Literal["outstanding", "paid"] = "outstanding"
    owner_aliases: dict[str, str] = Field(
        default_factory=lambda: {"solomon": "Solomon", "harminder": "Harminder"},
    )
    trade_cache_ttl: float = Field(default=3600.0, ge=0, description="Seconds a vendor trade stays cached")
    trade_cache_size: int = Field(default=256, ge=1)


class HubConfig(BaseModel):
    """Root configuration for RenoHub."""

    notion: NotionConfig = Field(default_factory=NotionConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @classmethod
    def load(cls, config_path: str | None = None, **overrides: Any) -> HubConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path) as f:
                    data = yaml.safe_load(f) or {}
            data = {section: values for section, values in data.items() if values is not None}

        # 2. Override from environment variables
        seen: set[tuple[str, str]] = set()
        for env_name, section, key in _ENV_SETTINGS:
            value = os.environ.get(env_name)
            if not value or (section, key) in seen:
                continue
            seen.add((section, key))
            # An empty YAML section parses to None
            data[section] = data.get(section) or {}
            data[section][key] = value

        # 3. Apply keyword overrides
        data.update(overrides)

        return cls.model_validate(data)

    def missing_aggregation_settings(self) -> list[str]:
        """Names of the settings an aggregation cannot run without."""
        required = {
            "MILESTONES_DB_ID": self.notion.milestones_db_id,
            "DELIVERABLES_DB_ID": self.notion.deliverables_db_id,
            "PAYMENTS_DB_ID": self.notion.payments_db_id,
            "CONFIG_DB_ID": self.notion.config_db_id,
            "NOTION_API_KEY": self.notion.api_key,
        }
        return [name for name, value in required.items() if not value]

    def require_aggregation_settings(self) -> None:
        missing = self.missing_aggregation_settings()
        if missing:
            raise ConfigurationError(missing)

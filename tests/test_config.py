"""Tests for configuration management."""

from pathlib import Path

import pytest
import yaml

from renohub.config import HubConfig
from renohub.errors import ConfigurationError

_ENV_NAMES = [
    "NOTION_API_KEY",
    "MILESTONES_DB_ID",
    "DELIVERABLES_DB_ID",
    "PAYMENTS_DB_ID",
    "PAYMENT_DB_ID",
    "CONFIG_DB_ID",
    "NOTION_BUDGET_DB_ID",
    "VENDOR_REGISTRY_DB_ID",
    "RENOHUB_MODEL",
    "RENOHUB_API_KEY",
    "GEMINI_API_KEY",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


class TestConfig:
    def test_default_config(self) -> None:
        config = HubConfig()
        assert config.notion.version == "2022-06-28"
        assert config.notion.page_size == 100
        assert config.llm.model == "gemini/gemini-2.5-flash"
        assert config.llm.max_tokens == 500
        assert config.report.currency == "MYR"
        assert config.report.window_days == 30
        assert config.report.owner_aliases == {"solomon": "Solomon", "harminder": "Harminder"}

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        yaml_content = {
            "notion": {"api_key": "secret_yaml", "milestones_db_id": "m-yaml"},
            "report": {"top_vendor_limit": 3, "vendor_basis": "paid"},
        }
        config_file = tmp_path / "renohub.yaml"
        config_file.write_text(yaml.dump(yaml_content))

        config = HubConfig.load(str(config_file))
        assert config.notion.api_key == "secret_yaml"
        assert config.notion.milestones_db_id == "m-yaml"
        assert config.report.top_vendor_limit == 3
        assert config.report.vendor_basis == "paid"

    def test_load_with_overrides(self) -> None:
        config = HubConfig.load(None, llm={"model": "ollama/llama3.1"})
        assert config.llm.model == "ollama/llama3.1"

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        config_file = tmp_path / "renohub.yaml"
        config_file.write_text(yaml.dump({"notion": {"milestones_db_id": "m-yaml", "deliverables_db_id": "d-yaml"}}))
        monkeypatch.setenv("MILESTONES_DB_ID", "m-env")
        monkeypatch.setenv("GEMINI_API_KEY", "gem-key")

        config = HubConfig.load(str(config_file))
        assert config.notion.milestones_db_id == "m-env"
        assert config.notion.deliverables_db_id == "d-yaml"
        assert config.llm.api_key == "gem-key"

    def test_payments_env_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PAYMENT_DB_ID", "legacy")
        assert HubConfig.load().notion.payments_db_id == "legacy"

        monkeypatch.setenv("PAYMENTS_DB_ID", "current")
        assert HubConfig.load().notion.payments_db_id == "current"

    def test_renohub_key_wins_over_gemini(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RENOHUB_API_KEY", "primary")
        monkeypatch.setenv("GEMINI_API_KEY", "secondary")
        assert HubConfig.load().llm.api_key == "primary"

    def test_empty_yaml_section(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        config_file = tmp_path / "renohub.yaml"
        config_file.write_text("notion:\nllm:\n")
        monkeypatch.setenv("NOTION_API_KEY", "secret_env")

        config = HubConfig.load(str(config_file))
        assert config.notion.api_key == "secret_env"
        assert config.llm.model == "gemini/gemini-2.5-flash"

    def test_missing_config_file(self) -> None:
        config = HubConfig.load("/nonexistent/renohub.yaml")
        assert config.notion.api_key is None


class TestRequiredSettings:
    def test_all_missing(self) -> None:
        assert HubConfig().missing_aggregation_settings() == [
            "MILESTONES_DB_ID",
            "DELIVERABLES_DB_ID",
            "PAYMENTS_DB_ID",
            "CONFIG_DB_ID",
            "NOTION_API_KEY",
        ]

    def test_require_raises(self) -> None:
        config = HubConfig.load(
            None,
            notion={"api_key": "k", "milestones_db_id": "m", "deliverables_db_id": "d", "payments_db_id": "p"},
        )
        with pytest.raises(ConfigurationError) as exc_info:
            config.require_aggregation_settings()
        assert exc_info.value.missing == ["CONFIG_DB_ID"]
        payload = exc_info.value.to_payload()
        assert payload["error"] == "configuration"
        assert "CONFIG_DB_ID" in payload["details"]

    def test_optional_ids_not_required(self) -> None:
        config = HubConfig.load(
            None,
            notion={
                "api_key": "k",
                "milestones_db_id": "m",
                "deliverables_db_id": "d",
                "payments_db_id": "p",
                "config_db_id": "c",
            },
        )
        assert config.missing_aggregation_settings() == []
        config.require_aggregation_settings()

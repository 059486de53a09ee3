"""Tests for the renohub CLI commands."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from renohub.cli import app
from renohub.errors import ConfigurationError, UpstreamError
from renohub.models.entities import Gate, Kpis, Milestone, Snapshot

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("NOTION_API_KEY", "MILESTONES_DB_ID", "DELIVERABLES_DB_ID", "PAYMENTS_DB_ID", "PAYMENT_DB_ID", "CONFIG_DB_ID"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def _snapshot() -> Snapshot:
    return Snapshot(
        milestones=[
            Milestone(title="Wiring", phase="G3"),
            Milestone(title="Demolition", phase="G4", risk_status="At Risk", indicator="🔴 Over"),
        ],
        gates=[Gate(id="G4", requirements_total=2, requirements_approved=1)],
        kpis=Kpis(budget_myr=50000, paid_myr=10000, remaining_myr=40000, paid_vs_budget=0.2),
    )


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "RenoHub" in result.stdout


class TestSnapshotCommand:
    def test_prints_json(self) -> None:
        with patch("renohub.hub.RenovationHub.aggregate_sync", return_value=_snapshot()) as mock_agg:
            result = runner.invoke(app, ["snapshot", "--now", "2024-06-01T00:00:00+00:00"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["kpis"]["budgetMYR"] == 50000
        assert mock_agg.call_args.args[0] == datetime(2024, 6, 1, tzinfo=UTC)

    def test_writes_file(self, tmp_path: Path) -> None:
        out = tmp_path / "snap.json"
        with patch("renohub.hub.RenovationHub.aggregate_sync", return_value=_snapshot()):
            result = runner.invoke(app, ["snapshot", "--output", str(out)])
        assert result.exit_code == 0
        assert "Project KPIs" in result.stdout
        assert json.loads(out.read_text())["kpis"]["paidMYR"] == 10000

    def test_configuration_error_exit_code(self) -> None:
        with patch("renohub.hub.RenovationHub.aggregate_sync", side_effect=ConfigurationError(["CONFIG_DB_ID"])):
            result = runner.invoke(app, ["snapshot"])
        assert result.exit_code == 1
        assert "configuration" in result.stdout

    def test_upstream_error_exit_code(self) -> None:
        with patch("renohub.hub.RenovationHub.aggregate_sync", side_effect=UpstreamError("notion", "HTTP 500")):
            result = runner.invoke(app, ["snapshot"])
        assert result.exit_code == 2

    def test_bad_now(self) -> None:
        result = runner.invoke(app, ["snapshot", "--now", "yesterday"])
        assert result.exit_code == 3


class TestSummarizeCommand:
    def _write(self, tmp_path: Path) -> Path:
        path = tmp_path / "snapshot.json"
        path.write_text(_snapshot().to_json())
        return path

    def test_summary(self, tmp_path: Path) -> None:
        path = self._write(tmp_path)
        with patch("renohub.hub.RenovationHub.summarize", new_callable=AsyncMock, return_value="Weekly update") as mock_sum:
            result = runner.invoke(app, ["summarize", "--input", str(path)])
        assert result.exit_code == 0
        assert "Weekly update" in result.stdout
        kind, data = mock_sum.call_args.args
        assert kind == "summary"
        assert data["kpis"]["paidVsBudget"] == 0.2

    def test_suggestion_picks_at_risk_milestone(self, tmp_path: Path) -> None:
        path = self._write(tmp_path)
        with patch("renohub.hub.RenovationHub.summarize", new_callable=AsyncMock, return_value="1. Call vendor") as mock_sum:
            result = runner.invoke(app, ["summarize", "--input", str(path), "--kind", "suggestion"])
        assert result.exit_code == 0
        kind, data = mock_sum.call_args.args
        assert kind == "suggestion"
        assert data["title"] == "Demolition"
        assert data["indicator"] == "🔴 Over"
        assert data["gateIssue"] == "Gate G4: 1 of 2 required deliverables approved"

    def test_unknown_milestone(self, tmp_path: Path) -> None:
        path = self._write(tmp_path)
        result = runner.invoke(app, ["summarize", "--input", str(path), "--kind", "suggestion", "--milestone", "Nope"])
        assert result.exit_code == 3

    def test_unreadable_input(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["summarize", "--input", str(tmp_path / "missing.json")])
        assert result.exit_code == 3


class TestCheckConfig:
    def test_missing_settings(self) -> None:
        result = runner.invoke(app, ["check-config"])
        assert result.exit_code == 1
        assert "MILESTONES_DB_ID" in result.stdout

    def test_complete(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name, value in {
            "NOTION_API_KEY": "k",
            "MILESTONES_DB_ID": "m",
            "DELIVERABLES_DB_ID": "d",
            "PAYMENTS_DB_ID": "p",
            "CONFIG_DB_ID": "c",
        }.items():
            monkeypatch.setenv(name, value)
        result = runner.invoke(app, ["check-config"])
        assert result.exit_code == 0
        assert "All required settings present" in result.stdout

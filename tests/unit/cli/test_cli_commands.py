# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for the metrics-reporter CLI against the in-memory cluster."""

from __future__ import annotations

import re
from pathlib import Path

import pytest
from click.testing import CliRunner

from omnibase_metrics_reporter.broker import BrokerMetadataClient, InMemoryBrokerCluster
from omnibase_metrics_reporter.cli.commands import cli
from omnibase_metrics_reporter.models import ModelMetricsReporterConfig
from omnibase_metrics_reporter.runtime import ReporterLifecycle

pytestmark = [pytest.mark.unit]


@pytest.fixture
def seen_configs(
    monkeypatch: pytest.MonkeyPatch, cluster: InMemoryBrokerCluster
) -> list[ModelMetricsReporterConfig]:
    """Route every metadata client and producer the CLI builds to ``cluster``."""
    seen: list[ModelMetricsReporterConfig] = []

    def from_config(
        cls: type[BrokerMetadataClient], config: ModelMetricsReporterConfig
    ) -> BrokerMetadataClient:
        seen.append(config)
        return cls(
            bootstrap_servers=config.bootstrap_servers,
            admin_factory=cluster.admin_factory,
            kafka_python_admin_factory=cluster.kafka_python_admin_factory,
        )

    monkeypatch.setattr(BrokerMetadataClient, "from_config", classmethod(from_config))
    monkeypatch.setattr(
        ReporterLifecycle, "_build_producer", lambda self: cluster.create_producer()
    )
    return seen


def _summary_value(output: str, label: str) -> int:
    match = re.search(rf"{label}\D+(\d+)", output)
    assert match is not None, output
    return int(match.group(1))


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "reporter.yaml"
    path.write_text(
        "metrics_reporter:\n"
        "  bootstrap_servers: in-memory:9092\n"
        "  topic: metrics\n"
        "  topic_auto_create_retries: 1\n"
        "  sample_interval_ms: 50\n"
        "  shutdown_grace_ms: 500\n"
    )
    return path


class TestProvisionCommand:
    def test_creates_topic(
        self,
        cluster: InMemoryBrokerCluster,
        seen_configs: list[ModelMetricsReporterConfig],
        config_file: Path,
    ) -> None:
        result = CliRunner().invoke(cli, ["--config", str(config_file), "provision"])

        assert result.exit_code == 0, result.output
        assert "PROVISIONED" in result.output
        assert cluster.topic_shape("metrics") == (1, 1)

    def test_missing_topic_without_auto_create(
        self,
        cluster: InMemoryBrokerCluster,
        seen_configs: list[ModelMetricsReporterConfig],
        tmp_path: Path,
    ) -> None:
        path = tmp_path / "reporter.yaml"
        path.write_text("topic: metrics\ntopic_auto_create: false\n")

        result = CliRunner().invoke(cli, ["--config", str(path), "provision"])

        assert result.exit_code == 1
        assert "topic_missing" in result.output
        assert cluster.topic_names() == []

    def test_bootstrap_servers_override(
        self,
        seen_configs: list[ModelMetricsReporterConfig],
        config_file: Path,
    ) -> None:
        result = CliRunner().invoke(
            cli,
            [
                "--config",
                str(config_file),
                "--bootstrap-servers",
                "other:9092",
                "provision",
            ],
        )

        assert result.exit_code == 0, result.output
        assert seen_configs[0].bootstrap_servers == "other:9092"


class TestDescribeCommand:
    def test_existing_topic(
        self,
        cluster: InMemoryBrokerCluster,
        seen_configs: list[ModelMetricsReporterConfig],
        config_file: Path,
    ) -> None:
        cluster.add_topic("metrics", partitions=2)

        result = CliRunner().invoke(
            cli, ["--config", str(config_file), "describe", "metrics"]
        )

        assert result.exit_code == 0, result.output
        assert "metrics" in result.output

    def test_missing_topic(
        self,
        seen_configs: list[ModelMetricsReporterConfig],
        config_file: Path,
    ) -> None:
        result = CliRunner().invoke(
            cli, ["--config", str(config_file), "describe", "absent"]
        )

        assert result.exit_code == 1
        assert "Topic not found" in result.output


class TestRunCommand:
    def test_runs_for_duration(
        self,
        cluster: InMemoryBrokerCluster,
        seen_configs: list[ModelMetricsReporterConfig],
        config_file: Path,
    ) -> None:
        result = CliRunner().invoke(
            cli, ["--config", str(config_file), "run", "--duration", "0.3"]
        )

        assert result.exit_code == 0, result.output
        assert "sends succeeded" in result.output
        assert cluster.records("metrics")

    def test_summary_counts_sends_settled_at_shutdown(
        self,
        cluster: InMemoryBrokerCluster,
        seen_configs: list[ModelMetricsReporterConfig],
        config_file: Path,
    ) -> None:
        cluster.send_delay_seconds = 30.0

        result = CliRunner().invoke(
            cli, ["--config", str(config_file), "run", "--duration", "0.3"]
        )

        assert result.exit_code == 0, result.output
        accepted = _summary_value(result.output, "sends accepted")
        assert accepted > 0
        assert _summary_value(result.output, "sends cancelled") == accepted
        assert cluster.records("metrics") == []


class TestConfigurationErrors:
    def test_invalid_config_file(self, tmp_path: Path) -> None:
        path = tmp_path / "reporter.yaml"
        path.write_text("topic_partitions: zero\n")

        result = CliRunner().invoke(cli, ["--config", str(path), "provision"])

        assert result.exit_code == 2
        assert "Configuration error" in result.output

    def test_missing_config_file(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["--config", str(tmp_path / "absent.yaml"), "provision"]
        )

        assert result.exit_code == 2

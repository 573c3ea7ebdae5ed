# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""
Metrics Reporter CLI Commands.

Provides manual topic provisioning, topic inspection and a foreground
reporter for development clusters.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from uuid import uuid4

import click
from rich.console import Console
from rich.table import Table

from omnibase_metrics_reporter.broker import BrokerMetadataClient
from omnibase_metrics_reporter.errors import (
    ProtocolConfigurationError,
    RuntimeHostError,
    TopicDescriptionError,
    TopicNotFoundError,
    TopicProvisioningError,
)
from omnibase_metrics_reporter.models import (
    ModelMetricsReporterConfig,
    ModelProvisioningResult,
    ModelTopicDescription,
)
from omnibase_metrics_reporter.provisioning import TopicProvisioner
from omnibase_metrics_reporter.runtime import ReporterLifecycle
from omnibase_metrics_reporter.utils import sanitize_bootstrap_servers

console = Console()


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML configuration file (default: environment variables)",
)
@click.option(
    "--bootstrap-servers",
    default=None,
    help="Kafka bootstrap servers (overrides configuration)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    bootstrap_servers: str | None,
    log_level: str,
) -> None:
    """Metrics reporter: provision the metrics topic and publish snapshots."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = (
            ModelMetricsReporterConfig.from_yaml(config_path)
            if config_path is not None
            else ModelMetricsReporterConfig.default()
        )
    except ProtocolConfigurationError as e:
        console.print(f"[red]Configuration error: {e.message}[/red]")
        raise SystemExit(2) from e
    if bootstrap_servers:
        config = config.model_copy(update={"bootstrap_servers": bootstrap_servers})
    ctx.obj = config


def _print_provisioning_result(result: ModelProvisioningResult) -> None:
    table = Table(title=f"Provisioning: {result.topic}")
    table.add_column("Attempt", justify="right")
    table.add_column("Started")
    table.add_column("Outcome")
    table.add_column("Detail")
    for attempt in result.attempts:
        style = "red" if attempt.outcome.value == "failed" else "green"
        table.add_row(
            str(attempt.attempt_number),
            attempt.started_at.strftime("%H:%M:%S.%f")[:-3],
            f"[{style}]{attempt.outcome.value}[/{style}]",
            attempt.reason or "-",
        )
    console.print(table)

    if result.succeeded:
        console.print(
            f"[bold green]PROVISIONED[/bold green] "
            f"(created={result.created}, {result.elapsed_seconds:.2f}s)"
        )
    else:
        reason = result.failure_reason.value if result.failure_reason else "unknown"
        console.print(
            f"[bold red]FAILED: {reason}[/bold red] ({result.elapsed_seconds:.2f}s)"
        )


def _print_description(description: ModelTopicDescription) -> None:
    table = Table(
        title=f"{description.name} ({description.partition_count} partitions, "
        f"via {description.surface.value})"
    )
    table.add_column("Partition", justify="right")
    table.add_column("Leader", justify="right")
    table.add_column("Replicas")
    table.add_column("ISR")
    for partition in description.partitions:
        table.add_row(
            str(partition.partition),
            str(partition.leader),
            ",".join(str(r) for r in partition.replicas) or "-",
            ",".join(str(r) for r in partition.isr) or "-",
        )
    console.print(table)


@cli.command("provision")
@click.pass_obj
def provision_cmd(config: ModelMetricsReporterConfig) -> None:
    """Ensure the metrics topic exists with the configured shape."""
    console.print(
        f"[bold blue]Provisioning {config.topic} on "
        f"{sanitize_bootstrap_servers(config.bootstrap_servers)}...[/bold blue]"
    )

    async def _run() -> ModelProvisioningResult:
        provisioner = TopicProvisioner.from_config(config)
        return await provisioner.provision(config.topic_spec(), uuid4())

    result = asyncio.run(_run())
    _print_provisioning_result(result)
    if result.description is not None:
        _print_description(result.description)
    raise SystemExit(0 if result.succeeded else 1)


@cli.command("describe")
@click.argument("topic")
@click.pass_obj
def describe_cmd(config: ModelMetricsReporterConfig, topic: str) -> None:
    """Show the partition and replica layout of TOPIC."""
    client = BrokerMetadataClient.from_config(config)
    try:
        description = asyncio.run(client.describe_topic(topic))
    except TopicNotFoundError as e:
        console.print(f"[yellow]Topic not found: {topic}[/yellow]")
        raise SystemExit(1) from e
    except TopicDescriptionError as e:
        console.print(f"[red]Could not describe {topic}: {e.message}[/red]")
        raise SystemExit(1) from e
    _print_description(description)


@cli.command("run")
@click.option(
    "--duration",
    type=float,
    default=None,
    help="Stop after this many seconds (default: run until interrupted)",
)
@click.pass_obj
def run_cmd(config: ModelMetricsReporterConfig, duration: float | None) -> None:
    """Run the reporter in the foreground."""

    async def _run() -> dict[str, object]:
        async with ReporterLifecycle(config) as reporter:
            console.print(
                f"[bold blue]Reporter {reporter.state.value}: publishing to "
                f"{config.topic} every {config.sample_interval_ms}ms[/bold blue]"
            )
            if duration is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(duration)
        # Taken after stop() so sends settled during shutdown are counted.
        return await reporter.health_check()

    try:
        health = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        return
    except TopicProvisioningError as e:
        _print_provisioning_result(e.result)
        raise SystemExit(1) from e
    except RuntimeHostError as e:
        console.print(f"[red]Reporter failed: {e.message}[/red]")
        raise SystemExit(1) from e

    table = Table(title="Reporter Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    publisher = health.get("publisher")
    if isinstance(publisher, dict):
        for key in ("accepted", "succeeded", "failed", "cancelled"):
            table.add_row(f"sends {key}", str(publisher.get(key, 0)))
    for key in (
        "sampler_ticks",
        "sampler_skipped",
        "sampler_missed",
        "snapshots_dropped",
    ):
        table.add_row(key.replace("_", " "), str(health.get(key, 0)))
    console.print(table)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()


__all__ = ["cli", "main"]

"""Typer CLI wiring lifeguard services."""

from __future__ import annotations

import asyncio
import logging
import signal

import typer
from rich.console import Console
from rich.table import Table

from lifeguard.domain import (
    RESOURCE_GROUP_KIND,
    LifecycleVerdict,
    ResourceRef,
    WaitBudget,
)
from lifeguard.errors import ConfigurationError
from lifeguard.polling import CancellationToken
from lifeguard.utils import format_elapsed

from .deps import get_container

app = typer.Typer(help="Lifeguard resource lifecycle command-line interface")

logger = logging.getLogger(__name__)

EXIT_FAILED = 1
EXIT_RETRYABLE = 2


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_ref(kind: str, name: str, group: str | None) -> ResourceRef:
    if kind.lower() in {"rg", "resourcegroup", "resource-group"}:
        kind = RESOURCE_GROUP_KIND
    ref = ResourceRef(name=name, kind=kind, group=group)
    if not ref.is_resource_group and not group:
        raise typer.BadParameter("--group is required for resources inside a resource group")
    return ref


def _budget(timeout: float | None, interval: float | None) -> WaitBudget:
    settings = get_container().settings
    return WaitBudget(
        timeout=timeout if timeout is not None else settings.teardown_timeout_seconds,
        interval=interval if interval is not None else settings.poll_interval_seconds,
    )


def _watch_interrupts(token: CancellationToken) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel, "interrupted by operator")
    except (NotImplementedError, RuntimeError, ValueError):
        logger.debug("SIGINT cannot be routed to the cancellation token on this platform")


def _report(ref: ResourceRef, verdict: LifecycleVerdict) -> None:
    typer.echo(f"Resource:\t{ref.display}")
    typer.echo(f"Verdict:\t{verdict.kind.value}")
    typer.echo(f"Attempts:\t{verdict.attempts}")
    typer.echo(f"Elapsed:\t{format_elapsed(verdict.elapsed)}")
    if verdict.reason:
        typer.echo(f"Reason:\t{verdict.reason}")
    if verdict.succeeded:
        return
    raise typer.Exit(code=EXIT_RETRYABLE if verdict.retryable else EXIT_FAILED)


@app.command("show-settings")
def show_settings() -> None:
    """Print the resolved application settings."""

    settings = get_container().settings
    typer.echo("Environment:\t" + settings.environment)
    typer.echo("Journal URL:\t" + settings.journal_url)
    typer.echo("Control plane:\t" + settings.control_plane_url)
    typer.echo("Subscription:\t" + (settings.subscription_id or "(not set)"))
    typer.echo(
        "Budget:\t\t"
        f"{settings.teardown_timeout_seconds:g}s timeout / "
        f"{settings.poll_interval_seconds:g}s interval"
    )


@app.command("teardown")
def teardown(
    kind: str = typer.Argument(..., help="Resource type, e.g. Microsoft.DBforPostgreSQL/servers or rg"),
    name: str = typer.Argument(..., help="Resource name"),
    group: str | None = typer.Option(None, help="Resource group containing the resource"),
    timeout: float | None = typer.Option(None, min=0.001, help="Wait budget in seconds"),
    interval: float | None = typer.Option(None, min=0.001, help="Delay between polls in seconds"),
) -> None:
    """Delete a resource and wait until the control plane reports it gone."""

    container = get_container()
    _configure_logging(container.settings.log_level)
    ref = _build_ref(kind, name, group)
    budget = _budget(timeout, interval)

    async def _run() -> LifecycleVerdict:
        token = CancellationToken()
        _watch_interrupts(token)
        async with container.resource_client() as client:
            return await container.orchestrator.teardown(
                ref,
                client.delete_submitter_for(ref),
                client.status_query_for(ref),
                budget,
                cancel_token=token,
            )

    try:
        verdict = asyncio.run(_run())
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}")
        raise typer.Exit(code=EXIT_FAILED) from exc
    _report(ref, verdict)


@app.command("provision")
def provision(
    kind: str = typer.Argument(..., help="Resource type, e.g. rg"),
    name: str = typer.Argument(..., help="Resource name"),
    location: str = typer.Option(..., help="Region for the new resource"),
    group: str | None = typer.Option(None, help="Resource group containing the resource"),
    timeout: float | None = typer.Option(None, min=0.001, help="Wait budget in seconds"),
    interval: float | None = typer.Option(None, min=0.001, help="Delay between polls in seconds"),
) -> None:
    """Create a resource and wait until it is ready."""

    container = get_container()
    _configure_logging(container.settings.log_level)
    ref = _build_ref(kind, name, group)
    budget = _budget(timeout, interval)

    async def _run() -> LifecycleVerdict:
        token = CancellationToken()
        _watch_interrupts(token)
        async with container.resource_client() as client:
            return await container.orchestrator.provision(
                ref,
                client.create_submitter_for(ref, {"location": location}),
                client.status_query_for(ref),
                budget,
                cancel_token=token,
            )

    try:
        verdict = asyncio.run(_run())
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}")
        raise typer.Exit(code=EXIT_FAILED) from exc
    _report(ref, verdict)


@app.command("history")
def history(limit: int = typer.Option(20, min=1, help="Number of verdicts to show")) -> None:
    """Show the most recent verdicts recorded in the journal."""

    container = get_container()
    records = asyncio.run(container.journal.list_verdicts(limit=limit))
    if not records:
        typer.echo("No verdicts recorded")
        return

    table = Table(title="Recent lifecycle verdicts")
    table.add_column("Recorded (UTC)")
    table.add_column("Operation")
    table.add_column("Resource")
    table.add_column("Verdict")
    table.add_column("Attempts", justify="right")
    table.add_column("Elapsed", justify="right")
    for record in records:
        table.add_row(
            record.recorded_at.strftime("%Y-%m-%d %H:%M:%S"),
            record.operation.value,
            record.ref.display,
            record.verdict.value,
            str(record.attempts),
            format_elapsed(record.elapsed),
        )
    Console(width=160).print(table)

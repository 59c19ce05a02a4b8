"""Typer CLI for validating component manifests and planning resource stages."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.table import Table

from platform_metadata.config.loader import load_manifest
from platform_metadata.manifest.descriptors import build_components
from platform_metadata.manifest.handler import ResourcePlan, build_registry
from platform_metadata.metadata.component import (
    AggregateDescriptor,
    ComponentDescriptor,
)
from platform_metadata.metadata.resource import collect_resources
from platform_metadata.observability.logging import configure_logging
from platform_metadata.resource.initializer import ResourceInitializer
from platform_metadata.resource.validator import ComponentValidator

logger = structlog.get_logger()
console = Console()
app = typer.Typer(name="pmeta", help="Platform component metadata CLI")


class Stage(StrEnum):
    INIT = "init"
    SERVICE = "service"
    TEST = "test"


@app.callback()
def main(
    log_level: str = typer.Option("warning", "--log-level", help="Log level"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Log as JSON"),
) -> None:
    """Validate component descriptors and plan resource initialization."""
    configure_logging(log_level, json_logs=json_logs)


def _load(manifests: list[Path]) -> list[ComponentDescriptor]:
    missing = [p for p in manifests if not p.exists()]
    if missing:
        console.print(f"[red]Manifest file not found: {missing[0]}[/red]")
        raise typer.Exit(1)
    return build_components(load_manifest(*manifests))


def _select(
    components: list[ComponentDescriptor], names: list[str]
) -> tuple[list[ComponentDescriptor], list[ComponentDescriptor]]:
    """Split *components* into those named and the rest."""
    known = {c.name for c in components}
    unknown = [n for n in names if n not in known]
    if unknown:
        msg = f"Unknown component(s): {unknown}"
        raise ValueError(msg)
    chosen = [c for c in components if c.name in names]
    rest = [c for c in components if c.name not in names]
    return chosen, rest


@app.command()
def validate(
    manifests: list[Path] = typer.Argument(..., help="Manifest YAML file(s)"),
) -> None:
    """Validate every component declared in the manifest(s)."""
    try:
        components = _load(manifests)
        ComponentValidator().validate(*components)
    except (ValueError, TypeError) as exc:
        console.print(f"[red]Validation error:[/red] {exc}")
        raise typer.Exit(1) from exc

    table = Table(title="Components")
    table.add_column("Component", style="cyan")
    table.add_column("Kind")
    table.add_column("Resources", justify="right")
    for c in components:
        kind = "aggregate" if isinstance(c, AggregateDescriptor) else "service"
        table.add_row(c.name, kind, str(len(collect_resources(c))))
    console.print(table)
    console.print(f"[green]Valid:[/green] {len(components)} component(s)")


@app.command()
def plan(
    manifests: list[Path] = typer.Argument(..., help="Manifest YAML file(s)"),
    stage: Stage = typer.Option(Stage.SERVICE, "--stage", help="Stage to plan"),
    component: list[str] = typer.Option(
        [],
        "--component",
        "-c",
        help="Component(s) to plan for; under test when --stage test",
    ),
) -> None:
    """Show the resources a stage would ensure, in dispatch order."""
    try:
        components = _load(manifests)
        ComponentValidator().validate(*components)
        result = ResourcePlan(stage=stage.value)
        initializer = ResourceInitializer(build_registry(components, result))

        if stage == Stage.TEST:
            if not component:
                console.print("[red]--stage test requires at least one --component[/red]")
                raise typer.Exit(1)
            under_test, others = _select(components, component)
            initializer.test(under_test, others)
        else:
            selected = _select(components, component)[0] if component else components
            if stage == Stage.INIT:
                initializer.init(selected)
            else:
                initializer.service(selected)
    except (ValueError, TypeError) as exc:
        console.print(f"[red]Plan failed:[/red] {exc}")
        raise typer.Exit(1) from exc

    if not result.resources:
        console.print(f"[yellow]Nothing to initialize at stage '{stage}'[/yellow]")
        return

    table = Table(title=f"Stage: {stage}")
    table.add_column("#", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Resource")
    table.add_column("Declared in")
    table.add_column("Config")
    for i, planned in enumerate(result.resources, start=1):
        table.add_row(
            str(i),
            planned.resource_type,
            planned.resource_id,
            planned.origin,
            ", ".join(f"{k}={v}" for k, v in planned.config.items()),
        )
    console.print(table)

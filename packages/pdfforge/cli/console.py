"""Shared helpers for the pdfforge command line."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Sequence

import click
from rich.console import Console

from ..core.settings import EngineSettings
from ..jobs import JobOrchestrator, TransformResult

console = Console()


def parse_index_list(ctx: click.Context, param: click.Parameter, value: str | None) -> list[int] | None:
    """Parse ``"0,2,5"`` into a list of zero-based indices."""

    if value is None:
        return None
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise click.BadParameter(f"expected comma separated integers, got {value!r}") from exc


def job_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command: output path, password and timeout."""

    func = click.option(
        "--timeout",
        type=float,
        default=None,
        help="Seconds before the job is cancelled (defaults to PDFFORGE_DEFAULT_TIMEOUT or 60)",
    )(func)
    func = click.option("--password", default=None, help="Password for encrypted input documents")(func)
    func = click.option(
        "--output", "-o", type=click.Path(dir_okay=False), default=None, help="Output path"
    )(func)
    return func


def compact(**values: Any) -> dict[str, Any]:
    """Drop options the user did not give so parameter defaults apply."""

    return {key: value for key, value in values.items() if value is not None}


def read_inputs(paths: Sequence[str]) -> list[bytes]:
    return [Path(path).read_bytes() for path in paths]


def run_job(
    tool: str,
    paths: Sequence[str],
    params: dict[str, Any],
    *,
    password: str | None = None,
    timeout: float | None = None,
) -> TransformResult:
    if password is not None:
        params = {**params, "password": password}
    settings = EngineSettings.from_env()
    with JobOrchestrator(settings) as orchestrator:
        return orchestrator.run(tool, read_inputs(paths), params, timeout=timeout)


def fail(result: TransformResult) -> None:
    kind = result.kind.value if result.kind is not None else "Error"
    console.print(f"[bold red]✗ {kind}:[/bold red] {result.message}")
    sys.exit(1)


def write_result(result: TransformResult, output: str | None) -> Path:
    """Write a successful result, exiting with status 1 on failure."""

    if not result.ok:
        fail(result)
    target = Path(output or result.suggested_filename or "output.pdf")
    target.write_bytes(result.data or b"")
    console.print(f"[bold green]✓ Wrote[/bold green] {target} [dim]({len(result.data or b'')} bytes)[/dim]")
    return target


def execute(
    tool: str,
    paths: Sequence[str],
    params: dict[str, Any],
    *,
    output: str | None,
    password: str | None,
    timeout: float | None,
) -> Path:
    console.print(f"[bold cyan]Running {tool} on {len(paths)} file(s)...[/bold cyan]")
    result = run_job(tool, paths, params, password=password, timeout=timeout)
    return write_result(result, output)


__all__ = ["console", "parse_index_list", "job_options", "compact", "read_inputs", "run_job", "fail", "write_result", "execute"]

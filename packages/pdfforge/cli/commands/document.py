"""CLI commands for metadata editing, flattening and inspection."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import click
from rich.table import Table

from ..console import compact, console, execute, fail, job_options, run_job


def _parse_pairs(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> dict[str, str]:
    pairs = {}
    for value in values:
        key, sep, text = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}")
        pairs[key] = text
    return pairs


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@click.command(name="metadata")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--title", default=None)
@click.option("--author", default=None)
@click.option("--subject", default=None)
@click.option("--keywords", default=None)
@click.option("--creator", default=None)
@click.option("--producer", default=None)
@click.option("--created", type=click.DateTime(), default=None, help="Creation date (UTC if no offset)")
@click.option("--modified", type=click.DateTime(), default=None, help="Modification date (UTC if no offset)")
@click.option("--custom", multiple=True, callback=_parse_pairs, help="Custom entry as KEY=VALUE; repeatable")
@click.option("--remove", "remove_fields", multiple=True, help="Field or custom key to delete; repeatable")
@job_options
def metadata(
    input_pdf, title, author, subject, keywords, creator, producer, created, modified, custom, remove_fields,
    output, password, timeout,
):
    """Set or remove document information fields."""
    params = compact(
        title=title,
        author=author,
        subject=subject,
        keywords=keywords,
        creator=creator,
        producer=producer,
        created=_iso(created),
        modified=_iso(modified),
    )
    if custom:
        params["custom"] = custom
    if remove_fields:
        params["remove"] = list(remove_fields)
    execute("metadata", [input_pdf], params, output=output, password=password, timeout=timeout)


@click.command(name="flatten")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@job_options
def flatten(input_pdf, output, password, timeout):
    """Burn annotations and form fields into the page content."""
    execute("flatten", [input_pdf], {}, output=output, password=password, timeout=timeout)


def _info_table(path: str, report: dict) -> Table:
    table = Table(title=f"PDF Information: {Path(path).name}")
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    encryption = report["encryption"]
    table.add_row("Version", str(report["version"]))
    table.add_row("Pages", str(report["page_count"]) if report["page_count"] is not None else "unknown")
    table.add_row("Size", f"{report['size']} bytes")
    table.add_row("Encrypted", "Yes" if encryption["encrypted"] else "No")
    if encryption["algorithm"]:
        table.add_row("Algorithm", encryption["algorithm"])
    if encryption["permissions"] is not None:
        table.add_row("Permissions", ", ".join(encryption["permissions"]) or "none")
    if report["recovered"]:
        table.add_row("Recovered", "Yes (cross-reference table rebuilt)")
    if report["locked"]:
        table.add_row("Note", "Locked: supply --password for full details")
    for name, value in report["metadata"].items():
        if name == "custom":
            for key, text in value.items():
                table.add_row(f"Custom: {key}", str(text))
        else:
            table.add_row(name.capitalize(), str(value))
    for page in report["pages"][:10]:
        table.add_row(
            f"Page {page['index']}",
            f"{page['width']} x {page['height']} pt, rotation {page['rotation']}, "
            f"{page['annotations']} annotation(s)",
        )
    if len(report["pages"]) > 10:
        table.add_row("...", f"and {len(report['pages']) - 10} more page(s)")
    return table


@click.command(name="info")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON report")
@job_options
def info(input_pdf, as_json, output, password, timeout):
    """
    Display information about a PDF file.

    Example:

        pdfforge info input.pdf
    """
    result = run_job("info", [input_pdf], {}, password=password, timeout=timeout)
    if not result.ok:
        fail(result)
    data = result.data or b"{}"
    if output:
        Path(output).write_bytes(data)
    if as_json:
        click.echo(data.decode("utf-8"))
        return
    console.print()
    console.print(_info_table(input_pdf, json.loads(data)))
    console.print()


COMMANDS = [metadata, flatten, info]


def configure(group: click.Group) -> None:
    for command in COMMANDS:
        group.add_command(command)

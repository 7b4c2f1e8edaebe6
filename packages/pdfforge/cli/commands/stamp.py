"""CLI commands for stamping page numbers and watermarks."""

from __future__ import annotations

import click

from ...core.content import POSITIONS, STANDARD_FONTS
from ..console import compact, execute, job_options

_POSITION = click.Choice(POSITIONS)
_FONT = click.Choice(sorted(STANDARD_FONTS))


@click.command(name="number")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--start", type=int, default=None, help="Number printed on the first page (default 1)")
@click.option("--format", "format_", default=None, help="Label template using {n} and {total}")
@click.option("--position", type=_POSITION, default=None, help="Where to place the number")
@click.option("--font", type=_FONT, default=None, help="Standard font name")
@click.option("--size", type=float, default=None, help="Font size in points")
@click.option("--margin", type=float, default=None, help="Distance from the page edge in points")
@job_options
def number(input_pdf, start, format_, position, font, size, margin, output, password, timeout):
    """
    Stamp page numbers on every page.

    Example:

        pdfforge number report.pdf --format "Page {n} of {total}" -o numbered.pdf
    """
    params = compact(start=start, format=format_, position=position, font=font, size=size, margin=margin)
    execute("number", [input_pdf], params, output=output, password=password, timeout=timeout)


@click.command(name="watermark")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--text", "-t", required=True, help="Watermark text")
@click.option("--font", type=_FONT, default=None, help="Standard font name")
@click.option("--size", type=float, default=None, help="Font size in points")
@click.option("--opacity", type=float, default=None, help="Opacity in (0, 1]")
@click.option("--angle", type=float, default=None, help="Counter-clockwise angle in degrees")
@click.option("--position", type=_POSITION, default=None, help="Anchor position")
@click.option("--layer", type=click.Choice(["over", "under"]), default=None, help="Draw above or beneath content")
@job_options
def watermark(input_pdf, text, font, size, opacity, angle, position, layer, output, password, timeout):
    """Overlay a text watermark on every page."""
    params = compact(
        text=text, font=font, size=size, opacity=opacity, angle=angle, position=position, layer=layer
    )
    execute("watermark", [input_pdf], params, output=output, password=password, timeout=timeout)


COMMANDS = [number, watermark]


def configure(group: click.Group) -> None:
    for command in COMMANDS:
        group.add_command(command)

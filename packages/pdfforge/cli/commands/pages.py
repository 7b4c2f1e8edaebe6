"""CLI commands for page level tools: merge, rotate, remove, extract, reorder."""

from __future__ import annotations

import click

from ..console import compact, execute, job_options, parse_index_list


@click.command(name="merge")
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--bookmarks/--no-bookmarks", default=False, help="Add one outline entry per input")
@click.option("--metadata-from", type=int, default=None, help="Index of the input whose metadata is kept")
@job_options
def merge(inputs, bookmarks, metadata_from, output, password, timeout):
    """
    Merge several PDFs into one, in the given order.

    Example:

        pdfforge merge a.pdf b.pdf c.pdf -o merged.pdf --bookmarks
    """
    params = compact(bookmarks=bookmarks, metadata_from=metadata_from)
    execute("merge", inputs, params, output=output, password=password, timeout=timeout)


@click.command(name="rotate")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--angle", "-a", required=True, type=int, help="Degrees to add; a multiple of 90")
@click.option("--pages", "-p", callback=parse_index_list, help="Zero-based pages, e.g. '0,2' (default: all)")
@job_options
def rotate(input_pdf, angle, pages, output, password, timeout):
    """Rotate pages by a multiple of 90 degrees."""
    params = compact(angle=angle, pages=pages)
    execute("rotate", [input_pdf], params, output=output, password=password, timeout=timeout)


@click.command(name="remove")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--pages", "-p", required=True, callback=parse_index_list, help="Zero-based pages to delete")
@job_options
def remove(input_pdf, pages, output, password, timeout):
    """Delete pages from a PDF."""
    execute("remove", [input_pdf], {"pages": pages}, output=output, password=password, timeout=timeout)


@click.command(name="extract")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--pages", "-p", required=True, callback=parse_index_list, help="Zero-based pages to keep")
@job_options
def extract(input_pdf, pages, output, password, timeout):
    """Copy selected pages into a new PDF, keeping their order."""
    execute("extract", [input_pdf], {"pages": pages}, output=output, password=password, timeout=timeout)


@click.command(name="reorder")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--order", required=True, callback=parse_index_list, help="New page order, e.g. '2,0,1' puts page 2 first"
)
@job_options
def reorder(input_pdf, order, output, password, timeout):
    """Rearrange pages by a permutation of every page index."""
    execute("reorder", [input_pdf], {"order": order}, output=output, password=password, timeout=timeout)


COMMANDS = [merge, rotate, remove, extract, reorder]


def configure(group: click.Group) -> None:
    for command in COMMANDS:
        group.add_command(command)

"""Command line interface for the pdfforge engine."""

from __future__ import annotations

from typing import Sequence

import click

from .. import __version__
from ..tools import load_builtin_plugins
from .commands import document, pages, security, stamp

COMMAND_MODULES = [pages, stamp, document, security]


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    pdfforge - merge, reorganize, stamp, flatten, inspect and secure PDF files.
    """
    load_builtin_plugins()


for module in COMMAND_MODULES:
    module.configure(cli)


def main(argv: Sequence[str] | None = None) -> None:
    cli.main(args=list(argv) if argv is not None else None, prog_name="pdfforge")


if __name__ == "__main__":  # pragma: no cover
    main()

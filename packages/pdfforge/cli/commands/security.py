"""CLI commands for adding and removing encryption."""

from __future__ import annotations

import click

from ...core.model import Permission
from ..console import compact, execute, job_options

_PERMISSIONS = click.Choice([member.name.lower() for member in Permission if member], case_sensitive=False)


@click.command(name="protect")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--user-password", "-u", required=True, help="Password required to open the output")
@click.option("--owner-password", default=None, help="Owner password (random when omitted)")
@click.option(
    "--permission",
    "permissions",
    multiple=True,
    type=_PERMISSIONS,
    help="Granted permission; repeatable (default: all)",
)
@click.option("--algorithm", type=click.Choice(["RC4-128", "AES-128", "AES-256"]), default=None)
@job_options
def protect(input_pdf, user_password, owner_password, permissions, algorithm, output, password, timeout):
    """Encrypt a PDF with a password and permission set."""
    params = compact(
        user_password=user_password,
        owner_password=owner_password,
        permissions=list(permissions) if permissions else None,
        algorithm=algorithm,
    )
    execute("protect", [input_pdf], params, output=output, password=password, timeout=timeout)


@click.command(name="unlock")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@job_options
def unlock(input_pdf, output, password, timeout):
    """Remove encryption using the document password (--password)."""
    if not password:
        raise click.UsageError("unlock requires --password")
    execute("unlock", [input_pdf], {}, output=output, password=password, timeout=timeout)


COMMANDS = [protect, unlock]


def configure(group: click.Group) -> None:
    for command in COMMANDS:
        group.add_command(command)

"""appupgen CLI - appupgen command."""

import click

from appupgen.cli.generate import generate_command
from appupgen.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="appupgen")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """appupgen - generate OTP .appup files by comparing two releases."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(generate_command, name="generate")


if __name__ == "__main__":
    cli()

"""extver CLI"""

import click

from extver import __version__
from extver.cli.check import check
from extver.cli.reconcile import reconcile

from .utils.logging import configure_logging


def _set_debug(ctx, param, value: bool):
    """Callback for the debug flag, configures logging before any command runs."""
    ctx.ensure_object(dict)
    ctx.obj["DEBUG"] = bool(value)
    configure_logging(ctx.obj["DEBUG"])
    return ctx.obj["DEBUG"]


@click.group()
@click.version_option(__version__, prog_name="extver")
@click.option(
    "--debug/--no-debug",
    default=False,
    is_eager=True,
    expose_value=False,
    callback=_set_debug,
    help="Enable debug mode",
)
@click.pass_context
def cli(ctx):
    """
    Extension version reconciliation.
    """
    ctx.ensure_object(dict)


cli.add_command(reconcile)
cli.add_command(check)


if __name__ == "__main__":
    cli(obj={})

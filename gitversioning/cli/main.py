"""gitversioning CLI"""

import click

from gitversioning import __version__
from gitversioning.cli.version import cloud, get_version

from .debug import add_debug_option


@click.group()
@click.version_option(__version__, prog_name="gitversioning")
@click.pass_context
def cli(ctx):
    """
    Compute versions from git history and version.json files.
    """
    ctx.ensure_object(dict)


cli.add_command(add_debug_option(get_version))
cli.add_command(add_debug_option(cloud))

add_debug_option(cli)

"""Init command implementation"""

from pathlib import Path

import click

from ..decorators import project_required, handle_errors
from ..utils.output import console
from ...services import ProjectService
from ...constants import EMOJI_SUCCESS


@click.command()
@click.argument('identifier')
@click.option('--description', '-d', default='', help='Utility description')
@click.option('--path', '-p', 'directory', type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=None, help='Directory to initialize (default: current directory)')
@handle_errors
@project_required
def init(ctx, identifier, description, directory):
    """Turn a directory into a utility

    IDENTIFIER is the utility name, optionally prefixed with its owner
    (owner/name). The utility starts at version 0.1.0.

    Examples:
        utility-tool init string-helpers

        utility-tool init my-org/string-helpers -d "String helpers"
    """
    directory = directory or Path.cwd()

    async def handler(session):
        return await ProjectService(session).init_utility(directory, identifier, description)

    descriptor = ctx.obj.run(handler)
    console.print(
        f"{EMOJI_SUCCESS} [green]Initialized utility[/green] "
        f"[cyan]{descriptor.identifier}[/cyan] version {descriptor.version}"
    )

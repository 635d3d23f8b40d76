"""Commands changing utilities in place"""

import click

from ..decorators import project_required, handle_errors
from ..utils.output import console, print_success
from ...services import ProjectService
from ...constants import EMOJI_SUCCESS


def _set_private(ctx, name: str, private: bool) -> None:
    session = ctx.obj.open_session()
    ProjectService(session).set_private(name, private)
    state = "private" if private else "public"
    console.print(f"{EMOJI_SUCCESS} utility [cyan]{name}[/cyan] is now {state}")


@click.command()
@click.argument('name')
@handle_errors
@project_required
def hide(ctx, name):
    """Mark a utility private (never pushed or pulled)"""
    _set_private(ctx, name, True)


@click.command()
@click.argument('name')
@handle_errors
@project_required
def reveal(ctx, name):
    """Mark a private utility public again"""
    _set_private(ctx, name, False)


@click.command()
@click.argument('name')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@handle_errors
@project_required
def remove(ctx, name, yes):
    """Delete a utility and its manifest dependency"""
    if not yes:
        click.confirm(f"Delete utility {name} and its files?", abort=True)

    session = ctx.obj.open_session()
    path = ProjectService(session).remove(name)
    print_success(f"removed {name} ({session.paths.relative(path)})")


@click.command(name='delete-version')
@click.argument('identifier')
@click.argument('version')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@handle_errors
@project_required
def delete_version(ctx, identifier, version, yes):
    """Delete a published version of a utility"""
    if not yes:
        click.confirm(f"Delete version {version} of {identifier} from the registry?", abort=True)

    async def handler(session):
        return await ProjectService(session).delete_version(identifier, version)

    resolved = ctx.obj.run(handler)
    print_success(f"deleted {resolved.identifier}@{version}")

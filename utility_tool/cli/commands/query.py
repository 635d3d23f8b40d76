"""Commands inspecting local and remote utilities"""

import click

from ..decorators import project_required, handle_errors
from ..utils.output import format_check_results, format_utility_list, format_version_list
from ...services import ProjectService


@click.command()
@click.argument('name', required=False)
@handle_errors
@project_required
def check(ctx, name):
    """Recompute utility hashes

    The descriptor of a utility is only rewritten when its hash changed.
    """
    async def handler(session):
        return await ProjectService(session).check(name)

    format_check_results(ctx.obj.run(handler))


@click.command(name='list')
@handle_errors
@project_required
def list_utilities(ctx):
    """List the utilities found in the project"""
    session = ctx.obj.open_session()
    format_utility_list(ProjectService(session).list_utilities(), session.paths.relative)


@click.command(name='list-versions')
@click.argument('identifier')
@handle_errors
@project_required
def list_versions(ctx, identifier):
    """List the published versions of a utility"""
    async def handler(session):
        return await ProjectService(session).list_versions(identifier)

    resolved, versions, current = ctx.obj.run(handler)
    format_version_list(resolved.identifier, versions, current)

"""Pull command implementation"""

import click

from ..decorators import project_required, handle_errors
from ..utils.output import format_sync_report
from ...services import PullService


@click.command()
@click.argument('identifier', required=False)
@click.option('--version', 'version', default=None, help='Exact version to pull (implies fixed policy)')
@click.option('--policy', '-p', 'update_policy', default=None,
              type=click.Choice(['major', 'minor', 'batch', 'fixed'], case_sensitive=False),
              help='Update policy recorded for the utility')
@click.option('--force', '-f', is_flag=True,
              help='Overwrite local copies that are ahead of the registry or unpublished')
@click.option('--keep-excess-utilities', 'keep_excess', is_flag=True,
              help='Do not remove utilities no dependency refers to')
@handle_errors
@project_required
def pull(ctx, identifier, version, update_policy, force, keep_excess):
    """Pull utilities from the registry

    With IDENTIFIER, pulls that utility as a main dependency of the project.
    Without it, pulls every dependency declared in package.json and removes
    utilities nothing refers to.

    Examples:
        utility-tool pull

        utility-tool pull my-org/string-helpers --version 1.2.0
    """
    async def handler(session):
        service = PullService(session)
        if identifier:
            return await service.pull(identifier, version=version,
                                      update_policy=update_policy, force=force)
        return await service.pull_all(keep_excess=keep_excess, force=force)

    report = ctx.obj.run(handler)
    format_sync_report(report, title="Pull Result")

    if not report.is_success:
        ctx.exit(1)

"""Push command implementation"""

import click

from ..decorators import project_required, handle_errors
from ..utils.output import format_sync_report
from ...services import PushService


@click.command()
@click.argument('identifier', required=False)
@click.option('--policy', '-p', 'update_policy', default=None,
              type=click.Choice(['major', 'minor', 'batch', 'fixed'], case_sensitive=False),
              help='Update policy recorded for the utility')
@handle_errors
@project_required
def push(ctx, identifier, update_policy):
    """Publish utilities whose version is ahead of the registry

    With IDENTIFIER, publishes that utility and records it as a main
    dependency. Without it, publishes every utility of the project.

    Examples:
        utility-tool push

        utility-tool push string-helpers --policy batch
    """
    async def handler(session):
        service = PushService(session)
        if identifier:
            return await service.push(identifier, update_policy=update_policy)
        return await service.push_all()

    report = ctx.obj.run(handler)
    format_sync_report(report, title="Push Result")

    if not report.is_success:
        ctx.exit(1)

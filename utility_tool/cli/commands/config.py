"""Configuration management commands"""

from pathlib import Path

import click
import yaml
from rich.panel import Panel
from rich.syntax import Syntax

from ..decorators import handle_errors
from ..utils.output import console
from ...services.config_service import ConfigService
from ...api.exceptions import ConfigError
from ...constants import EMOJI_SUCCESS, OWNER_NAME_PATTERN


@click.group(invoke_without_command=True)
@click.option('--org', '-o', default=None, help='Default owner of the project utilities')
@click.option('--dest', default=None, help='Default installation directory')
@click.pass_context
@handle_errors
def config(ctx, org, dest):
    """Add the utility-tool section to package.json

    Fields already present are kept. Run in a directory without
    package.json to create one.
    """
    if ctx.invoked_subcommand is not None:
        return

    root = ctx.obj.project_root_option or ctx.obj.project_root or Path.cwd()
    manifest = ConfigService().configure_project(root, org=org, dest=dest)

    console.print(f"{EMOJI_SUCCESS} [green]Configured[/green] {manifest.path}")
    console.print(f"  org:  {manifest.org or '[dim]not set[/dim]'}")
    console.print(f"  dest: {manifest.dest}")


@config.command()
@handle_errors
def show():
    """Show the user-level tool configuration"""
    service = ConfigService()
    data = service.load_config().to_dict()

    yaml_str = yaml.dump(data, default_flow_style=False, sort_keys=False)
    console.print(Panel(
        Syntax(yaml_str, "yaml", theme="monokai", line_numbers=False),
        title=str(service.config_path),
        border_style="blue",
    ))


@config.command(name='set-owner')
@click.argument('owner')
@handle_errors
def set_owner(owner):
    """Set the default owner used when a project has no org"""
    if not OWNER_NAME_PATTERN.fullmatch(owner):
        raise ConfigError(f'"{owner}" is not a valid owner name')

    service = ConfigService()
    tool_config = service.load_config()
    tool_config.default_owner = owner
    service.save_config(tool_config)
    console.print(f"{EMOJI_SUCCESS} default owner set to [cyan]{owner}[/cyan]")

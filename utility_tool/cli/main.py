# utility_tool/cli/main.py
"""Main CLI entry point for utility-tool"""

import sys
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import click
from rich.logging import RichHandler

from ..constants import APP_NAME, LOG_FORMAT
from ..core import Prompter, SyncSession, find_project_root
from ..models import ToolConfig
from ..registry import RemoteRegistry
from ..services import ConfigService
from ..utils.async_utils import run_async
from .utils.output import console

# Import all commands
from .commands import (
    init,
    pull,
    push,
    query,
    manage,
    config,
)

T = TypeVar("T")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Setup logging configuration

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ]
    )

    # Adjust third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class Context:
    """CLI context object with lazy project and configuration loading

    ``registry`` and ``prompter`` may be set before invocation to run the
    commands against another registry or scripted answers.
    """

    def __init__(self,
                 project_root: Optional[Path] = None,
                 registry: Optional[RemoteRegistry] = None,
                 prompter: Optional[Prompter] = None,
                 tool_config: Optional[ToolConfig] = None):
        self.project_root_option = Path(project_root) if project_root else None
        self.registry = registry
        self.prompter = prompter
        self.interactive: bool = True
        self.verbose: bool = False
        self.debug: bool = False
        self._tool_config = tool_config
        self._project_root: Optional[Path] = None
        self._project_checked: bool = False

    @property
    def tool_config(self) -> ToolConfig:
        """User-level configuration (lazy loading)"""
        if self._tool_config is None:
            self._tool_config = ConfigService().load_config()
        return self._tool_config

    @property
    def project_root(self) -> Optional[Path]:
        """Get project root directory (lazy loading)

        Returns:
            Project root path or None if not in a project
        """
        if not self._project_checked:
            self._project_checked = True
            self._project_root = find_project_root(self.project_root_option)
            if self.debug:
                console.print(f"[dim]Project root: {self._project_root}[/dim]")
        return self._project_root

    def open_session(self) -> SyncSession:
        """New session for the project; the registry is opened by ``async with``"""
        prompter = self.prompter or Prompter(interactive=self.interactive)
        return SyncSession.create(self.project_root, self.tool_config,
                                  prompter=prompter, registry=self.registry)

    def run(self, handler: Callable[[SyncSession], Awaitable[T]]) -> T:
        """Run a coroutine function with an open session"""
        async def runner():
            async with self.open_session() as session:
                return await handler(session)

        return run_async(runner())


@click.group(name=APP_NAME)
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.option('-C', '--project-root', type=click.Path(file_okay=False, path_type=Path),
              default=None, help='Project directory (default: nearest package.json)')
@click.option('--no-input', is_flag=True, help='Fail instead of prompting')
@click.pass_context
def cli(ctx, verbose, debug, quiet, project_root, no_input):
    """Utility Tool - share source utilities between projects

    A utility is a directory with a utils.json descriptor. Every published
    version is a branch named after the version in the utility's own
    repository; projects pull utilities by update policy and record them
    in package.json.
    """
    # Setup logging
    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        setup_logging(verbose=verbose, debug=debug)

    # Keep a context supplied by the caller (tests, embedding)
    if not isinstance(ctx.obj, Context):
        ctx.obj = Context()
    if project_root is not None:
        ctx.obj.project_root_option = project_root
    ctx.obj.verbose = verbose
    ctx.obj.debug = debug
    ctx.obj.interactive = not no_input


# Register commands
cli.add_command(init.init)
cli.add_command(pull.pull)
cli.add_command(push.push)
cli.add_command(query.check)
cli.add_command(query.list_utilities)
cli.add_command(query.list_versions)
cli.add_command(manage.hide)
cli.add_command(manage.reveal)
cli.add_command(manage.remove)
cli.add_command(manage.delete_version)
cli.add_command(config.config)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()

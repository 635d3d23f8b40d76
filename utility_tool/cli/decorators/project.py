"""Project context decorator for CLI commands"""

from functools import wraps
from typing import Callable

import click

from ..utils.output import console
from ...api.exceptions import ProjectNotFoundError, UtilityToolError
from ...constants import EMOJI_ERROR


def project_required(func: Callable) -> Callable:
    """Decorator that ensures command runs inside a project

    The project root is the nearest directory holding ``package.json``
    (or ``--project-root``). The wrapped command receives the click
    context as its first argument.

    Args:
        func: Command function to decorate

    Returns:
        Decorated function
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()

        if ctx.obj.project_root is None:
            console.print(f"{EMOJI_ERROR} {ProjectNotFoundError()}")
            ctx.exit(1)

        return func(ctx, *args, **kwargs)

    return wrapper


def handle_errors(func: Callable) -> Callable:
    """Decorator printing tool errors and exiting with status 1"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except UtilityToolError as e:
            console.print(f"{EMOJI_ERROR} [red]{e}[/red]")
            click.get_current_context().exit(1)

    return wrapper

"""Interactive prompts serialized through named locks"""

import asyncio
import functools
import logging
from typing import List, Optional

from rich.console import Console
from rich.prompt import Prompt, Confirm

from ..api.exceptions import UserCancelledError
from ..utils.async_utils import NamedLocks, locked

logger = logging.getLogger(__name__)


class Prompter:
    """Asks the user for input without blocking the event loop.

    Each kind of question runs under its own named lock, so concurrent
    resolutions never interleave two prompts of the same kind on the
    terminal. Subclasses override the ``_*_sync`` hooks.
    """

    def __init__(self, locks: Optional[NamedLocks] = None, console: Optional[Console] = None,
                 interactive: bool = True):
        self.locks = locks or NamedLocks()
        self.console = console or Console(stderr=True)
        self.interactive = interactive

    async def _run(self, func, *args, **kwargs):
        if not self.interactive:
            logger.error("Input required but prompts are disabled: %s", args[0] if args else "")
            raise UserCancelledError()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    @locked("readAnswerTo")
    async def ask(self, question: str, password: bool = False, default: Optional[str] = None) -> str:
        """Ask for a non-empty free-text answer"""
        return await self._run(self._ask_sync, question, password, default)

    @locked("readPrompt")
    async def select(self, question: str, choices: List[str], default: Optional[str] = None) -> str:
        """Ask the user to pick one of the choices"""
        return await self._run(self._select_sync, question, choices, default)

    @locked("requestPermsToRun")
    async def confirm(self, question: str, default: bool = False) -> bool:
        """Ask a yes/no question"""
        return await self._run(self._confirm_sync, question, default)

    def _ask_sync(self, question: str, password: bool, default: Optional[str]) -> str:
        while True:
            kwargs = {"default": default} if default is not None else {}
            answer = Prompt.ask(question, console=self.console, password=password, **kwargs)
            if answer and answer.strip():
                return answer.strip()
            self.console.print("[yellow]A value is required[/yellow]")

    def _select_sync(self, question: str, choices: List[str], default: Optional[str]) -> str:
        kwargs = {"default": default} if default is not None else {}
        return Prompt.ask(question, console=self.console, choices=choices, **kwargs)

    def _confirm_sync(self, question: str, default: bool) -> bool:
        return Confirm.ask(question, console=self.console, default=default)

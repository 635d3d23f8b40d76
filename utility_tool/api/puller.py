"""Puller API for pull operations"""

import asyncio
from pathlib import Path
from typing import Optional

from ..core.path_resolver import find_project_root
from ..core.prompt import Prompter
from ..core.session import SyncSession
from ..core.tokens import TokenStore
from ..models.config import ToolConfig
from ..models.result import SyncReport
from ..registry.base import RemoteRegistry
from ..services.config_service import ConfigService
from ..services.pull_service import PullService
from .exceptions import ProjectNotFoundError


class SessionClient:
    """Shared setup of the synchronous facades"""

    def __init__(self,
                 project_root: Optional[Path] = None,
                 tool_config: Optional[ToolConfig] = None,
                 prompter: Optional[Prompter] = None,
                 registry: Optional[RemoteRegistry] = None,
                 token_store: Optional[TokenStore] = None):
        """
        Args:
            project_root: Project root (found from the current directory by default)
            tool_config: Tool configuration (loaded from the tool home by default)
            prompter: Prompter for interactive questions
            registry: Registry to use instead of the configured one
            token_store: Token store for the GitHub registry
        """
        root = Path(project_root) if project_root else find_project_root()
        if root is None:
            raise ProjectNotFoundError()
        self.project_root = root.resolve()
        self.tool_config = tool_config or ConfigService().load_config()
        self.prompter = prompter
        self.registry = registry
        self.token_store = token_store

    def open_session(self) -> SyncSession:
        """New session; must be created inside the event loop that uses it"""
        return SyncSession.create(
            self.project_root,
            self.tool_config,
            prompter=self.prompter,
            token_store=self.token_store,
            registry=self.registry,
        )


class Puller(SessionClient):
    """Puller class for pull operations"""

    def pull(self, identifier: str, version: Optional[str] = None,
             force: bool = False) -> SyncReport:
        """
        Pull one utility as a main dependency

        Args:
            identifier: ``name`` or ``owner/name``
            version: Exact version to pull
            force: Overwrite diverged local copies

        Returns:
            SyncReport: Results of every utility touched
        """
        return asyncio.run(self._async_pull(identifier, version, force))

    def pull_all(self, keep_excess: bool = False, force: bool = False) -> SyncReport:
        """
        Pull all declared dependencies and remove unreferenced utilities

        Args:
            keep_excess: Keep utilities no declared dependency reaches
            force: Overwrite diverged local copies

        Returns:
            SyncReport: Results of every utility touched
        """
        return asyncio.run(self._async_pull_all(keep_excess, force))

    async def _async_pull(self, identifier: str, version: Optional[str], force: bool) -> SyncReport:
        async with self.open_session() as session:
            return await PullService(session).pull(identifier, version=version, force=force)

    async def _async_pull_all(self, keep_excess: bool, force: bool) -> SyncReport:
        async with self.open_session() as session:
            return await PullService(session).pull_all(keep_excess=keep_excess, force=force)


def pull(identifier: Optional[str] = None, version: Optional[str] = None,
         force: bool = False, keep_excess: bool = False,
         project_root: Optional[Path] = None) -> SyncReport:
    """
    Convenience function for pulling

    Pulls ``identifier`` when given, otherwise every declared dependency.
    """
    puller = Puller(project_root=project_root)
    if identifier:
        return puller.pull(identifier, version=version, force=force)
    return puller.pull_all(keep_excess=keep_excess, force=force)

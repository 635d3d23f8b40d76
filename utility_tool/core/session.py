"""State owned by one top-level command"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from .path_resolver import PathResolver
from .project_context import ProjectContext
from .prompt import Prompter
from .tokens import TokenProvider, TokenStore, ChainedTokenStore, EnvironmentTokenStore, FileTokenStore
from ..constants import RegistryType
from ..models.config import ToolConfig
from ..models.manifest import ProjectManifest
from ..models.result import SyncReport
from ..models.version import Version
from ..registry.base import RemoteRegistry
from ..registry.factory import RegistryFactory
from ..utils.async_utils import NamedLocks

logger = logging.getLogger(__name__)


class SyncSession:
    """Everything a pull or push run shares.

    Replaces process-wide caches: the processed-dependency set, the remote
    version cache, the identifier cache and the token cache all live here
    and die with the command.
    """

    def __init__(self,
                 root: Path,
                 registry: RemoteRegistry,
                 prompter: Optional[Prompter] = None,
                 tool_config: Optional[ToolConfig] = None,
                 manifest: Optional[ProjectManifest] = None,
                 locks: Optional[NamedLocks] = None,
                 cpu_count: Optional[int] = None):
        self.root = Path(root).resolve()
        self.paths = PathResolver(self.root)
        self.registry = registry
        self.locks = locks or (prompter.locks if prompter else NamedLocks())
        self.prompter = prompter or Prompter(self.locks)
        self.tool_config = tool_config or ToolConfig()
        self.manifest = manifest or ProjectManifest.load(self.root)
        self.cpu_count = cpu_count or os.cpu_count() or 1
        self.report = SyncReport()

        self._context: Optional[ProjectContext] = None
        self._processed: Set[str] = set()
        self._versions: Dict[Tuple[str, str], List[Version]] = {}
        self.identifiers: Dict[str, object] = {}

    @classmethod
    def create(cls,
               root: Path,
               tool_config: ToolConfig,
               prompter: Optional[Prompter] = None,
               token_store: Optional[TokenStore] = None,
               registry: Optional[RemoteRegistry] = None) -> 'SyncSession':
        """
        Build a session with the configured registry and credentials

        Args:
            root: Project root
            tool_config: User-level configuration
            prompter: Prompter (a terminal prompter by default)
            token_store: Token store (environment then token file by default)
            registry: Registry to use instead of the configured one
        """
        locks = prompter.locks if prompter else NamedLocks()
        prompter = prompter or Prompter(locks)

        if registry is None:
            registry = RegistryFactory.create_from_config(tool_config.registry)
            if tool_config.registry.registry_type is RegistryType.GITHUB:
                store = token_store or ChainedTokenStore([EnvironmentTokenStore(), FileTokenStore()])
                provider = TokenProvider(store, registry.verify_token, prompter, locks)
                registry.token_callback = provider.get_token

        return cls(root, registry, prompter=prompter, tool_config=tool_config, locks=locks)

    async def close(self) -> None:
        await self.registry.close()

    async def __aenter__(self):
        await self.registry.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # Project state

    @property
    def context(self) -> ProjectContext:
        """Current project context, re-assembled after invalidation"""
        if self._context is None:
            self._context = ProjectContext.assemble(self.root, self.manifest)
        return self._context

    def invalidate_context(self) -> None:
        """Mark on-disk state as changed"""
        self._context = None

    def refresh_context(self) -> ProjectContext:
        self.invalidate_context()
        return self.context

    def save_manifest(self) -> bool:
        written = self.manifest.save()
        if written:
            logger.info("Updated %s", self.manifest.path)
        return written

    @property
    def pull_batch_size(self) -> int:
        return self.cpu_count * self.tool_config.parallelism.pull_factor

    @property
    def push_batch_size(self) -> int:
        return self.cpu_count * self.tool_config.parallelism.push_factor

    # Shared caches

    async def claim(self, name: str) -> bool:
        """
        Mark a dependency as processed for this run

        Returns:
            False if it was already claimed
        """
        async with self.locks("processedDependencies"):
            if name in self._processed:
                return False
            self._processed.add(name)
            return True

    @property
    def processed(self) -> Set[str]:
        return set(self._processed)

    async def versions(self, owner: str, repo: str, refresh: bool = False) -> List[Version]:
        """Remote versions of a utility, fetched once per session"""
        key = (owner, repo)
        async with self.locks(f"versions:{owner}/{repo}"):
            if refresh or key not in self._versions:
                self._versions[key] = await self.registry.list_versions(owner, repo)
            return self._versions[key]

    def forget_versions(self, owner: str, repo: str) -> None:
        self._versions.pop((owner, repo), None)

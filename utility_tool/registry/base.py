"""Remote registry abstract base class"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Any

import aiofiles

from ..api.exceptions import TransportError
from ..constants import UTILITY_DESCRIPTOR_FILE, DEFAULT_BASE_BRANCH
from ..models.utility import UtilityDescriptor
from ..models.version import Version
from ..utils.hash_utils import list_utility_files
from ..utils.version_utils import parse_versions

logger = logging.getLogger(__name__)

TokenCallback = Callable[[str], Awaitable[Optional[str]]]


class RemoteRegistry(ABC):
    """Abstract base class for registries storing versions as branches.

    Every utility maps to the repository ``owner/name``; each published
    version is a branch named exactly after the version string, and the
    branch's ``utils.json`` is the authoritative remote record.
    """

    def __init__(self, config: Dict[str, Any] = None, token_callback: Optional[TokenCallback] = None):
        """
        Initialize registry

        Args:
            config: Registry-specific configuration
            token_callback: Coroutine returning the token for an owner
        """
        self.config = config or {}
        self.token_callback = token_callback
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize registry (e.g., open HTTP connections)"""
        if not self._initialized:
            await self._do_initialize()
            self._initialized = True

    async def _do_initialize(self) -> None:
        """Actual initialization logic to be implemented by subclasses"""
        pass

    async def close(self) -> None:
        """Close registry connections"""
        if self._initialized:
            await self._do_close()
            self._initialized = False

    async def _do_close(self) -> None:
        """Actual cleanup logic to be implemented by subclasses"""
        pass

    async def __aenter__(self):
        """Async context manager entry"""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def token_for(self, owner: str) -> Optional[str]:
        if self.token_callback is None:
            return None
        return await self.token_callback(owner)

    # Primitive operations

    @abstractmethod
    async def list_branches(self, owner: str, repo: str) -> List[str]:
        """
        List branch names of a repository

        Args:
            owner: Repository owner
            repo: Repository (utility) name

        Returns:
            Branch names; empty when the repository does not exist
        """
        pass

    @abstractmethod
    async def get_file(self, owner: str, repo: str, path: str, ref: str) -> Optional[bytes]:
        """
        Fetch a file's content at a branch

        Returns:
            File content or None if the file or branch does not exist
        """
        pass

    @abstractmethod
    async def create_branch(self, owner: str, repo: str, branch: str,
                            base: str = DEFAULT_BASE_BRANCH) -> None:
        """Create a branch pointing at the head of ``base``"""
        pass

    @abstractmethod
    async def delete_branch(self, owner: str, repo: str, branch: str) -> bool:
        """
        Delete a branch

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def repository_exists(self, owner: str, repo: str) -> bool:
        pass

    @abstractmethod
    async def create_repository(self, owner: str, repo: str, public: bool = False) -> None:
        """Create a repository whose base branch already has a commit"""
        pass

    @abstractmethod
    async def put_file(self, owner: str, repo: str, path: str, content: bytes,
                       branch: str, message: str) -> None:
        """Create or force-replace a single file on a branch"""
        pass

    @abstractmethod
    async def delete_file(self, owner: str, repo: str, path: str,
                          branch: str, message: str) -> bool:
        pass

    @abstractmethod
    async def download_version(self, owner: str, repo: str, version: str,
                               destination: Path) -> Path:
        """
        Download the content of a version branch

        Args:
            owner: Repository owner
            repo: Repository (utility) name
            version: Version branch
            destination: Directory that receives the files (replaced)

        Returns:
            The destination directory
        """
        pass

    @abstractmethod
    async def verify_token(self, owner: str, token: str) -> bool:
        """Check that a token is accepted by the registry"""
        pass

    @abstractmethod
    async def _do_upload(self, owner: str, repo: str, branch: str,
                         files: Dict[str, bytes]) -> str:
        """
        Commit the files as the only content of a new branch

        Returns:
            Commit identifier
        """
        pass

    # Composite operations

    async def list_versions(self, owner: str, repo: str) -> List[Version]:
        """
        List published versions

        Returns:
            Versions sorted ascending; branches not named as a version are ignored
        """
        branches = await self.list_branches(owner, repo)
        return parse_versions(branches)

    async def get_descriptor(self, owner: str, repo: str, version: str) -> Optional[UtilityDescriptor]:
        """
        Read the utility descriptor published at a version

        Returns:
            Descriptor or None if missing or unreadable
        """
        content = await self.get_file(owner, repo, UTILITY_DESCRIPTOR_FILE, version)
        if content is None:
            return None

        try:
            return UtilityDescriptor.from_json(content.decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning("Remote descriptor of %s/%s@%s is unreadable: %s", owner, repo, version, e)
            return None

    async def ensure_repository(self, owner: str, repo: str, public: bool = False) -> bool:
        """
        Create the repository if it does not exist

        Returns:
            True if it was created
        """
        if await self.repository_exists(owner, repo):
            return False

        logger.info("Creating repository %s/%s (public=%s)", owner, repo, public)
        await self.create_repository(owner, repo, public=public)
        return True

    async def publish_directory(self, owner: str, repo: str, version: str,
                                directory: Path, public: bool = False) -> str:
        """
        Publish a utility directory as the branch ``version``

        Either the branch ends up fully formed or it does not exist: any
        failure during the commit sequence deletes the branch before the
        error is raised.

        Args:
            owner: Repository owner
            repo: Repository (utility) name
            version: Version branch to create
            directory: Utility root directory
            public: Visibility of a newly created repository

        Returns:
            Commit identifier

        Raises:
            TransportError: If the upload failed
        """
        directory = Path(directory)
        files = await self._collect_files(directory)

        await self.ensure_repository(owner, repo, public=public)

        try:
            logger.info("Uploading %d files to %s/%s@%s", len(files), owner, repo, version)
            return await self._do_upload(owner, repo, version, files)
        except Exception as e:
            logger.error("Upload of %s/%s@%s failed: %s", owner, repo, version, e)
            await self._rollback_branch(owner, repo, version)
            if isinstance(e, TransportError):
                raise
            raise TransportError(f"Failed to publish {owner}/{repo}@{version}: {e}") from e

    async def _rollback_branch(self, owner: str, repo: str, branch: str) -> None:
        try:
            if await self.delete_branch(owner, repo, branch):
                logger.info("Branch %s deleted successfully.", branch)
        except TransportError as e:
            logger.error("Failed to delete branch %s of %s/%s: %s", branch, owner, repo, e)

    @staticmethod
    async def _collect_files(directory: Path) -> Dict[str, bytes]:
        names = list_utility_files(directory)
        if (directory / UTILITY_DESCRIPTOR_FILE).is_file():
            names.append(UTILITY_DESCRIPTOR_FILE)

        files = {}
        for name in sorted(names):
            async with aiofiles.open(directory / name, 'rb') as f:
                files[name] = await f.read()
        return files


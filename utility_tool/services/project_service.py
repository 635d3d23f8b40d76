"""Local project operations: init, check, list, hide, remove, versions"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from ..api.exceptions import (
    UtilityNotFoundError,
    ValidationError,
    VersionNotFoundError,
)
from ..constants import (
    DEFAULT_UTILITY_VERSION,
    PROMPT_PUBLIC_REPO,
    MSG_HASH_MATCH,
    MSG_HASH_MISMATCH,
    UTILITY_DESCRIPTOR_FILE,
)
from ..core.identifier import ResolvedIdentifier, resolve_identifier, resolve_owner, split_identifier
from ..core.session import SyncSession
from ..models.result import CheckResult
from ..models.utility import LocalUtility, UtilityDescriptor
from ..models.version import Version
from ..utils.file_utils import remove_directory
from ..utils.hash_utils import calculate_directory_hash_async
from ..utils.version_utils import find_version

logger = logging.getLogger(__name__)


async def check_utility(utility: LocalUtility) -> CheckResult:
    """
    Recompute a utility's hash and persist it if it changed

    Args:
        utility: Local utility

    Returns:
        Check result; the descriptor file is only written on mismatch
    """
    current = await calculate_directory_hash_async(utility.path)
    matched = utility.descriptor.hash == current

    if matched:
        logger.info(MSG_HASH_MATCH.format(utility=utility.name))
    else:
        logger.info(MSG_HASH_MISMATCH.format(utility=utility.name))
        utility.descriptor.hash = current
        utility.descriptor.save(utility.path)

    return CheckResult(name=utility.name, matched=matched, hash=current, path=utility.path)


class ProjectService:
    """Service for the utilities of one project"""

    def __init__(self, session: SyncSession):
        """Initialize project service

        Args:
            session: Current session
        """
        self.session = session

    def _require(self, name: str) -> LocalUtility:
        utility = self.session.context.find(name)
        if utility is None:
            raise UtilityNotFoundError(name)
        return utility

    async def init_utility(self, directory: Path, identifier: str,
                           description: str = "") -> UtilityDescriptor:
        """Turn a directory into a utility

        Args:
            directory: Directory to initialize
            identifier: ``name`` or ``owner/name``
            description: Free text description

        Returns:
            The written descriptor

        Raises:
            ValidationError: If the directory or the name cannot be used
        """
        directory = Path(directory).resolve()
        owner, name = split_identifier(identifier)
        context = self.session.context

        if (directory / UTILITY_DESCRIPTOR_FILE).exists():
            raise ValidationError(f"directory {directory} is already a utility")

        nested = context.utilities_under(directory)
        if nested:
            listing = "\n".join(f"{u.name}: {u.path}" for u in nested)
            raise ValidationError(f"this directory contains sub utilities\n{listing}")

        if name in context:
            raise ValidationError(f'name "{name}" is taken by a different utility')

        owner = await resolve_owner(self.session, name, owner)
        public_repo = await self.session.prompter.confirm(PROMPT_PUBLIC_REPO, default=False)

        readme = directory / "README.md"
        if not readme.exists():
            readme.write_text(f"# {name}\n", encoding="utf-8")

        descriptor = UtilityDescriptor(
            name=name,
            owner=owner,
            version=DEFAULT_UTILITY_VERSION,
            hash=await calculate_directory_hash_async(directory),
            private=False,
            public_repo=public_repo,
            description=description or "",
        )
        descriptor.save(directory)
        self.session.invalidate_context()

        logger.info("Initialized utility %s/%s at %s", owner, name, directory)
        return descriptor

    async def check(self, name: Optional[str] = None) -> List[CheckResult]:
        """Recompute hashes of one or all utilities"""
        if name:
            utilities = [self._require(name)]
        else:
            utilities = list(self.session.context.utilities)

        return [await check_utility(utility) for utility in utilities]

    def list_utilities(self) -> List[LocalUtility]:
        return list(self.session.context.utilities)

    async def list_versions(self, identifier: str) -> Tuple[ResolvedIdentifier, List[Version], Optional[str]]:
        """Remote versions of a utility

        Returns:
            Resolved identifier, remote versions ascending, local version if installed
        """
        resolved = await resolve_identifier(self.session, identifier)
        versions = await self.session.versions(resolved.owner, resolved.name)

        utility = self.session.context.find(resolved.name)
        current = utility.descriptor.version if utility else None
        if current and find_version(versions, current) is None:
            logger.warning(
                "current version %s of %s is not published, push it first", current, resolved.name
            )

        return resolved, versions, current

    def set_private(self, name: str, private: bool) -> UtilityDescriptor:
        """Hide (never pushed or pulled) or reveal a utility"""
        utility = self._require(name)
        if utility.descriptor.private != private:
            utility.descriptor.private = private
            utility.descriptor.save(utility.path)
        logger.info("utility %s is now %s", name, "private" if private else "public")
        return utility.descriptor

    def remove(self, name: str) -> Path:
        """Delete a utility directory and its manifest entry"""
        utility = self._require(name)
        remove_directory(utility.path)

        if self.session.manifest.remove_dependency(name):
            self.session.save_manifest()
        self.session.invalidate_context()

        logger.info("Removed utility %s at %s", name, utility.path)
        return utility.path

    async def delete_version(self, identifier: str, version: str) -> ResolvedIdentifier:
        """Delete a published version branch

        Raises:
            ValidationError: On malformed name or version
            VersionNotFoundError: If the version is not published
        """
        split_identifier(identifier)
        if Version.parse(version) is None:
            raise ValidationError(f"{version} is not a valid version")

        resolved = await resolve_identifier(self.session, identifier)
        versions = await self.session.versions(resolved.owner, resolved.name, refresh=True)
        if find_version(versions, version) is None:
            raise VersionNotFoundError(resolved.identifier, version)

        await self.session.registry.delete_branch(resolved.owner, resolved.name, version)
        self.session.forget_versions(resolved.owner, resolved.name)

        logger.info("Deleted version %s of %s", version, resolved.identifier)
        return resolved

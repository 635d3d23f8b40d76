"""Pull engine: bring local utilities in line with the registry"""

import logging
from typing import Dict, List, Optional

from .project_service import check_utility
from ..api.exceptions import ValidationError
from ..constants import (
    UpdatePolicy,
    DEFAULT_UPDATE_POLICY,
    MSG_NOT_FOUND_REMOTELY,
    MSG_UP_TO_DATE,
    MSG_LOCAL_AHEAD,
    MSG_PUSH_FIRST,
    UTILITY_DESCRIPTOR_FILE,
)
from ..core.dependency_resolver import collect_dependencies
from ..core.identifier import ResolvedIdentifier, resolve_identifier
from ..core.session import SyncSession
from ..models.result import CleanupResult, CleanupState, PullResult, PullState, SyncReport
from ..models.utility import DependencyDescription, LocalUtility, UtilityDescriptor
from ..models.version import Version, compare
from ..utils.async_utils import run_in_chunks
from ..utils.file_utils import remove_directory
from ..utils.version_utils import find_version, latest, select_version

logger = logging.getLogger(__name__)


def parse_policy(value: Optional[str]) -> UpdatePolicy:
    """
    Parse an update policy name

    Raises:
        ValidationError: If the name is unknown
    """
    if value is None:
        return UpdatePolicy(DEFAULT_UPDATE_POLICY)
    try:
        return UpdatePolicy(value)
    except ValueError:
        raise ValidationError(
            f'unknown update policy "{value}", expected one of: '
            + ", ".join(p.value for p in UpdatePolicy)
        )


class PullService:
    """Service for pulling utilities from the registry"""

    def __init__(self, session: SyncSession):
        """Initialize pull service

        Args:
            session: Current session
        """
        self.session = session

    async def pull(self, identifier: str,
                   version: Optional[str] = None,
                   update_policy: Optional[str] = None,
                   force: bool = False) -> SyncReport:
        """Pull one utility as a main dependency, then its dependencies

        Args:
            identifier: ``name`` or ``owner/name``
            version: Exact version to pull (implies the ``fixed`` policy)
            update_policy: Policy, defaulting to the manifest entry's one
            force: Overwrite diverged local copies

        Returns:
            Report of every utility touched
        """
        if update_policy is None:
            if version:
                update_policy = UpdatePolicy.FIXED.value
            else:
                declared = self.session.manifest.dependencies.get(identifier.split("/")[-1])
                update_policy = declared.update_policy if declared else None

        await self.session.claim(identifier.split("/")[-1])
        await self.pull_utility(identifier, version=version, update_policy=update_policy,
                                main=True, force=force)

        self.session.report.complete()
        return self.session.report

    async def pull_all(self, keep_excess: bool = False, force: bool = False) -> SyncReport:
        """Pull every declared dependency, then remove unreferenced utilities

        Args:
            keep_excess: Keep utilities no declared dependency reaches
            force: Overwrite diverged local copies

        Returns:
            Report of every utility touched
        """
        declared = dict(self.session.manifest.dependencies)
        await self.process_dependencies(declared, main=True, force=force)

        if not keep_excess:
            await self.cleanup_excess()

        self.session.report.complete()
        return self.session.report

    async def process_dependencies(self, deps: Dict[str, DependencyDescription],
                                   main: bool, force: bool = False) -> List[Optional[PullResult]]:
        """Pull dependencies in bounded concurrent batches, each at most once per run

        Args:
            deps: Name -> dependency description
            main: Whether these are declared in the project manifest
            force: Overwrite diverged local copies

        Returns:
            Results, None for dependencies already processed in this run
        """
        async def process(item):
            name, description = item
            if not await self.session.claim(name):
                return None
            return await self.pull_utility(
                f"{description.owner}/{description.repo or name}",
                version=description.version or None,
                update_policy=description.update_policy,
                main=main,
                force=force,
            )

        return await run_in_chunks(list(deps.items()), process, self.session.pull_batch_size)

    async def pull_utility(self, identifier: str,
                           version: Optional[str] = None,
                           update_policy: Optional[str] = None,
                           main: bool = False,
                           force: bool = False) -> PullResult:
        """Converge a single utility to the version its policy selects

        Args:
            identifier: ``name`` or ``owner/name``
            version: Requested version (otherwise the local one, else latest)
            update_policy: ``major``, ``minor``, ``batch`` or ``fixed``
            main: Record the outcome in the project manifest
            force: Overwrite diverged local copies

        Returns:
            Pull result (also recorded in the session report)
        """
        try:
            policy = parse_policy(update_policy)
            resolved = await resolve_identifier(self.session, identifier)
        except ValidationError as e:
            logger.error(str(e))
            return self._record(PullResult(
                name=identifier.split("/")[-1], state=PullState.INVALID, main=main, message=str(e)
            ))

        result = await self._pull_resolved(resolved, version, policy, main, force)
        return self._record(result)

    async def _pull_resolved(self, resolved: ResolvedIdentifier, version: Optional[str],
                             policy: UpdatePolicy, main: bool, force: bool) -> PullResult:
        session = self.session
        name = resolved.name

        def result(state: PullState, message: str = "", **kwargs) -> PullResult:
            return PullResult(name=name, state=state, owner=resolved.owner, main=main,
                              message=message, **kwargs)

        versions = await session.versions(resolved.owner, name)
        if not versions:
            message = MSG_NOT_FOUND_REMOTELY.format(utility=resolved.identifier)
            logger.error(message)
            return result(PullState.NOT_FOUND, message)
        logger.info("Latest version of %s is %s", resolved.identifier, latest(versions))

        local = session.context.find(name)
        if local is not None:
            if local.descriptor.private:
                logger.info("utility %s exists on project and it is private", name)
                return result(PullState.PRIVATE, "private utility", path=local.path,
                              version=local.descriptor.version)
            logger.info("utility %s exists on the project at %s with version %s",
                        name, local.path, local.descriptor.version)

        target_raw = version or (local.descriptor.version if local else None) or latest(versions).raw
        target = Version.parse(target_raw)
        if target is None:
            message = f"{target_raw} is not a valid version"
            logger.error(message)
            return result(PullState.INVALID, message)

        if local is None or resolved.owner_switched:
            selected = find_version(versions, target.raw)
            if selected is None:
                message = f"Specified version {target.raw} of {resolved.identifier} is not found remotely"
                logger.error(message)
                return result(PullState.NOT_FOUND, message)
            if local is None:
                occupied = self._occupied_destination(resolved, force)
                if occupied:
                    logger.error(occupied)
                    return result(PullState.INVALID, occupied, path=resolved.path)
            logger.info("utility %s does not exist on the project and will be pulled with version %s",
                        resolved.identifier, selected)
            return await self._download(resolved, selected, policy, main, force,
                                        previous=local.descriptor.version if local else None)

        local_version = local.descriptor.parsed_version
        if local_version is None:
            message = f"{local.descriptor.version} is not a valid version"
            logger.error(message)
            return result(PullState.INVALID, message, path=local.path)

        await check_utility(local)

        unpublished = find_version(versions, local_version.raw) is None
        if unpublished and not force:
            message = MSG_PUSH_FIRST.format(utility=name, path=local.path, version=local_version)
            logger.warning(message)
            return result(PullState.DIVERGED_UNPUBLISHED, message, path=local.path,
                          version=local_version.raw)

        selected = select_version(versions, policy, target)
        if selected is None:
            message = f"Specified version {target.raw} of {resolved.identifier} is not found remotely"
            logger.error(message)
            return result(PullState.NOT_FOUND, message, path=local.path, version=local_version.raw)
        logger.info("selected version %s for %s with update policy %s", selected, name, policy.value)

        if policy is UpdatePolicy.FIXED:
            pull_needed = selected.raw != local_version.raw or unpublished
            ahead = False
        else:
            pull_needed = compare(selected, ">", local_version) or (
                unpublished and not compare(selected, "<", local_version)
            )
            ahead = compare(selected, "<", local_version)

        if ahead and not force:
            message = MSG_LOCAL_AHEAD.format(utility=name, local=local_version, remote=selected)
            logger.warning(message)
            return result(PullState.DIVERGED_AHEAD, message, path=local.path,
                          version=local_version.raw)

        if pull_needed or ahead:
            return await self._download(resolved, selected, policy, main, force,
                                        previous=local_version.raw)

        logger.info(MSG_UP_TO_DATE.format(utility=name, version=selected))
        await self._after_resolution(resolved, selected, policy, main, force)
        return result(PullState.UP_TO_DATE, path=local.path, version=selected.raw,
                      previous_version=local_version.raw)

    @staticmethod
    def _occupied_destination(resolved: ResolvedIdentifier, force: bool) -> Optional[str]:
        """
        Check that a fresh pull will not replace something else

        Returns:
            Reason the destination cannot be used, or None
        """
        path = resolved.path
        if not path.exists():
            return None

        descriptor_path = path / UTILITY_DESCRIPTOR_FILE
        if descriptor_path.is_file():
            try:
                descriptor = UtilityDescriptor.load(descriptor_path)
            except (OSError, ValueError, AttributeError) as e:
                return f"{path} holds an unreadable {UTILITY_DESCRIPTOR_FILE}: {e}"
            if descriptor.name != resolved.name:
                return f"{path} already holds utility {descriptor.name}, cannot pull {resolved.name} there"
            return None

        if force:
            return None
        if not path.is_dir():
            return f"{path} exists and is not a directory, use --force to replace it"
        if any(path.iterdir()):
            return f"{path} is not empty, use --force to replace it"
        return None

    async def _download(self, resolved: ResolvedIdentifier, selected: Version,
                        policy: UpdatePolicy, main: bool, force: bool,
                        previous: Optional[str] = None) -> PullResult:
        logger.info("Pulling %s with version %s, update policy %s",
                    resolved.identifier, selected, policy.value)

        await self.session.registry.download_version(
            resolved.owner, resolved.name, selected.raw, resolved.path
        )
        self.session.invalidate_context()

        await self._after_resolution(resolved, selected, policy, main, force)
        return PullResult(
            name=resolved.name,
            state=PullState.PULLED,
            owner=resolved.owner,
            version=selected.raw,
            previous_version=previous,
            path=resolved.path,
            main=main,
        )

    async def _after_resolution(self, resolved: ResolvedIdentifier, selected: Version,
                                policy: UpdatePolicy, main: bool, force: bool) -> None:
        """Pull the utility's own dependencies and record it if it is a main one"""
        descriptor_path = resolved.path
        try:
            descriptor = UtilityDescriptor.load(descriptor_path)
        except (OSError, ValueError) as e:
            logger.warning("Cannot read descriptor of %s at %s: %s", resolved.name, descriptor_path, e)
            descriptor = None

        if descriptor is not None and descriptor.deps:
            await self.process_dependencies(descriptor.deps, main=False, force=force)

        if main:
            self.session.manifest.set_dependency(resolved.name, DependencyDescription(
                owner=resolved.owner,
                repo=resolved.name,
                version=selected.raw,
                update_policy=policy.value,
            ))
            self.session.save_manifest()

    async def cleanup_excess(self) -> List[CleanupResult]:
        """Remove local utilities no declared dependency reaches

        A utility is only removed when its current version is published and
        its content hash equals the published one; anything unverifiable is
        kept with a warning.
        """
        context = self.session.refresh_context()
        closure = collect_dependencies(context, self.session.manifest.dependencies)
        excess = [
            u for u in context.utilities
            if u.name not in closure and u.path != self.session.root
        ]
        if not excess:
            return []

        logger.info("Inspecting %d unreferenced utilities", len(excess))
        results = await run_in_chunks(excess, self._cleanup_one, self.session.pull_batch_size)
        self.session.invalidate_context()
        return results

    async def _cleanup_one(self, utility: LocalUtility) -> CleanupResult:
        descriptor = utility.descriptor
        identifier = descriptor.identifier

        def kept(state: CleanupState, message: str) -> CleanupResult:
            logger.warning(message)
            return self._record(CleanupResult(name=utility.name, state=state, path=utility.path,
                                              message=message))

        versions = await self.session.versions(descriptor.owner, descriptor.name) if descriptor.owner else []
        if find_version(versions, descriptor.version) is None:
            return kept(CleanupState.KEPT_UNPUBLISHED, (
                f"utility {identifier} is not registered on main dependencies, and its current "
                f"version does not exist remotely, please push to register it, or remove it manually."
            ))

        remote = await self.session.registry.get_descriptor(descriptor.owner, descriptor.name,
                                                            descriptor.version)
        if remote is None:
            return kept(CleanupState.KEPT_CORRUPT_REMOTE, (
                f"utility {identifier} version {descriptor.version} is not registered on main "
                f"dependencies but has a corrupt remote origin (config file not found), "
                f"to fix please push or fix it manually."
            ))

        check = await check_utility(utility)
        if remote.hash != check.hash:
            return kept(CleanupState.KEPT_MODIFIED, (
                f"utility {identifier} version {descriptor.version} is not registered on main "
                f"dependencies, its remote hash does not match the current hash, did you forget "
                f"to update its version and push after editing it?"
            ))

        logger.info("removing excess utility %s at %s", identifier, utility.path)
        remove_directory(utility.path)
        return self._record(CleanupResult(name=utility.name, state=CleanupState.REMOVED,
                                          path=utility.path))

    def _record(self, result):
        self.session.report.add(result)
        return result


"""Push engine: publish local utilities as version branches"""

import logging
from typing import Optional

from .project_service import check_utility
from .pull_service import parse_policy
from ..api.exceptions import TransportError, ValidationError
from ..constants import (
    DEFAULT_UPDATE_POLICY,
    MSG_UP_TO_DATE,
    MSG_REMOTE_AHEAD,
    MSG_VERSION_NOT_BUMPED,
)
from ..core.dependency_resolver import collect_dependencies
from ..core.identifier import is_valid_name, resolve_identifier, split_identifier
from ..core.session import SyncSession
from ..models.result import PushResult, PushState, SyncReport
from ..models.utility import DependencyDescription
from ..models.version import compare
from ..utils.async_utils import run_in_chunks
from ..utils.version_utils import latest, suggest_version

logger = logging.getLogger(__name__)


class PushService:
    """Service for publishing utilities to the registry"""

    def __init__(self, session: SyncSession):
        """Initialize push service

        Args:
            session: Current session
        """
        self.session = session

    async def push(self, identifier: str, update_policy: Optional[str] = None) -> SyncReport:
        """Push one utility as a main dependency"""
        await self.push_utility(identifier, main=True, update_policy=update_policy)
        self.session.report.complete()
        return self.session.report

    async def push_all(self) -> SyncReport:
        """Push every local utility.

        Utilities declared in the manifest, or not reachable from it at all,
        are recorded as main dependencies.
        """
        context = self.session.refresh_context()
        declared = self.session.manifest.dependencies
        closure = collect_dependencies(context, declared)

        async def process(utility):
            main = utility.name in declared or utility.name not in closure
            return await self.push_utility(utility.name, main=main)

        await run_in_chunks(list(context.utilities), process, self.session.push_batch_size)

        self.session.report.complete()
        return self.session.report

    async def push_utility(self, identifier: str, main: bool = False,
                           update_policy: Optional[str] = None) -> PushResult:
        """Publish a utility if its local version is ahead of the registry

        Args:
            identifier: ``name`` or ``owner/name``
            main: Record the utility in the project manifest on success
            update_policy: Policy to record; keeps the existing one by default

        Returns:
            Push result (also recorded in the session report)
        """
        name = identifier.split("/")[-1]

        def result(state: PushState, message: str = "", **kwargs) -> PushResult:
            if state.is_failure:
                logger.error(message)
            elif state.is_warning:
                logger.warning(message)
            return self._record(PushResult(name=name, state=state, main=main, message=message, **kwargs))

        try:
            split_identifier(identifier)
            if update_policy is not None:
                parse_policy(update_policy)
        except ValidationError as e:
            return result(PushState.INVALID, f"Provided utility name is not valid: {e}")

        utility = self.session.context.find(name)
        if utility is None:
            return result(PushState.NOT_FOUND, f'utility named "{name}" is not found')

        try:
            resolved = await resolve_identifier(self.session, identifier)
        except ValidationError as e:
            return result(PushState.INVALID, str(e))

        descriptor = utility.descriptor
        check = await check_utility(utility)

        if descriptor.private:
            logger.warning("this utility %s is private it cannot be uploaded", name)
            return result(PushState.PRIVATE, "private utility", owner=resolved.owner,
                          version=descriptor.version)

        local_version = descriptor.parsed_version
        if local_version is None:
            return result(PushState.INVALID, f"{descriptor.version} is not a valid version",
                          owner=resolved.owner)

        if not is_valid_name(descriptor.name):
            return result(PushState.INVALID, f'"{descriptor.name}" is not a valid name.',
                          owner=resolved.owner)

        if resolved.owner_switched and descriptor.owner != resolved.owner:
            descriptor.owner = resolved.owner
            descriptor.save(utility.path)

        owner = resolved.owner
        versions = await self.session.versions(owner, name)
        last = latest(versions)

        if last is None or compare(last, "<", local_version):
            state = await self._upload(utility, owner, local_version.raw)
            if state is PushState.FAILED:
                return result(state, f"Failed to publish {owner}/{name}@{local_version}",
                              owner=owner, version=local_version.raw,
                              remote_version=last.raw if last else None)
            logger.info("Published %s/%s@%s", owner, name, local_version)
            outcome = result(state, owner=owner, version=local_version.raw,
                             remote_version=last.raw if last else None)

        elif compare(last, ">", local_version):
            return result(PushState.REMOTE_AHEAD,
                          MSG_REMOTE_AHEAD.format(utility=name, remote=last, local=local_version),
                          owner=owner, version=local_version.raw, remote_version=last.raw)

        else:
            remote = await self.session.registry.get_descriptor(owner, name, last.raw)
            if remote is None:
                return result(PushState.REMOTE_CORRUPT, (
                    f"Error loading utility config file from remote source for utility {name} "
                    f"at {last} (file not found), push a new version or fix it manually"
                ), owner=owner, version=local_version.raw, remote_version=last.raw)

            if remote.hash != check.hash:
                message = MSG_VERSION_NOT_BUMPED.format(utility=name, version=last)
                message += f" (for example {suggest_version(local_version.raw)})"
                return result(PushState.VERSION_NOT_BUMPED, message, owner=owner,
                              version=local_version.raw, remote_version=last.raw)

            logger.info(MSG_UP_TO_DATE.format(utility=name, version=local_version))
            outcome = result(PushState.UP_TO_DATE, owner=owner, version=local_version.raw,
                             remote_version=last.raw)

        if main:
            self._record_main_dependency(name, owner, local_version.raw, update_policy)
        return outcome

    async def _upload(self, utility, owner: str, version: str) -> PushState:
        logger.info("pushing %s/%s@%s ...", owner, utility.name, version)
        try:
            await self.session.registry.publish_directory(
                owner, utility.name, version, utility.path,
                public=utility.descriptor.public_repo,
            )
        except TransportError as e:
            logger.error("Upload of %s failed: %s", utility.name, e)
            return PushState.FAILED
        finally:
            self.session.forget_versions(owner, utility.name)
        return PushState.PUBLISHED

    def _record_main_dependency(self, name: str, owner: str, version: str,
                                update_policy: Optional[str]) -> None:
        manifest = self.session.manifest
        existing = manifest.dependencies.get(name)
        policy = update_policy or (existing.update_policy if existing else DEFAULT_UPDATE_POLICY)

        manifest.set_dependency(name, DependencyDescription(
            owner=owner,
            repo=name,
            version=version,
            update_policy=policy,
        ))
        self.session.save_manifest()

    def _record(self, result: PushResult) -> PushResult:
        self.session.report.add(result)
        return result


"""Resolution of ``owner/name`` and bare ``name`` identifiers"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .session import SyncSession
from ..api.exceptions import ConfigError, ValidationError
from ..constants import (
    OWNER_UTILITY_PATTERN,
    UTILITY_NAME_PATTERN,
    OWNER_NAME_PATTERN,
    UTILITY_DESCRIPTOR_FILE,
    PROMPT_OWNER,
    PROMPT_INSTALLATION_PATH,
    PROMPT_OVERRIDE_OWNER,
)

logger = logging.getLogger(__name__)


@dataclass
class ResolvedIdentifier:
    """Where a utility comes from and where it lives on disk"""

    owner: str
    name: str
    dir_name: str
    parent: Path
    exists_locally: bool = False
    owner_switched: bool = False
    owner_specified: bool = False

    @property
    def path(self) -> Path:
        return self.parent / self.dir_name

    @property
    def identifier(self) -> str:
        return f"{self.owner}/{self.name}"


def is_valid_name(name: str) -> bool:
    return bool(name) and bool(UTILITY_NAME_PATTERN.fullmatch(name))


def split_identifier(raw: str):
    """
    Split an identifier into owner and name

    Returns:
        ``(owner or None, name)``

    Raises:
        ValidationError: If it is neither ``owner/name`` nor ``name``
    """
    match = OWNER_UTILITY_PATTERN.fullmatch(raw or "")
    if match:
        return match.group(1), match.group(2)
    if is_valid_name(raw):
        return None, raw
    raise ValidationError(
        f'invalid utility identifier "{raw}", it should be in the form of '
        "<utility name> or <owner name>/<utility name>"
    )


async def resolve_identifier(session: SyncSession, raw: str) -> ResolvedIdentifier:
    """
    Resolve an identifier against the project, once per session

    Args:
        session: Current session
        raw: ``owner/name`` or ``name``

    Returns:
        Resolved identifier

    Raises:
        ValidationError: On malformed identifiers or owners
        ConfigError: If the installation directory is unusable
    """
    async with session.locks(f"identifier:{raw}"):
        cached = session.identifiers.get(raw)
        if cached is not None:
            return cached

        resolved = await _resolve(session, raw)
        session.identifiers[raw] = resolved
        return resolved


async def _resolve(session: SyncSession, raw: str) -> ResolvedIdentifier:
    owner, name = split_identifier(raw)
    owner_specified = owner is not None
    owner_switched = False

    utility = session.context.find(name)
    manifest = session.manifest

    if utility is not None:
        local_owner = utility.descriptor.owner
        if owner_specified and local_owner and local_owner != owner:
            owner_switched = await session.prompter.confirm(
                PROMPT_OVERRIDE_OWNER.format(utility=name, current=local_owner, provided=owner)
            )
            if not owner_switched:
                owner = local_owner
        elif not owner_specified:
            if not local_owner:
                raise ValidationError(
                    f"utility {name} has no specified owner, please add one to "
                    f"{utility.path / UTILITY_DESCRIPTOR_FILE}"
                )
            owner = local_owner

        return ResolvedIdentifier(
            owner=owner,
            name=name,
            dir_name=utility.path.name,
            parent=utility.path.parent,
            exists_locally=True,
            owner_switched=owner_switched,
            owner_specified=owner_specified,
        )

    group = manifest.find_grouping(name)
    owner = await resolve_owner(session, name, owner)

    if group is not None and group.installation_destination:
        parent_rel = group.installation_destination
    elif manifest.dest:
        parent_rel = manifest.dest
    else:
        parent_rel = await session.prompter.ask(PROMPT_INSTALLATION_PATH)

    parent = session.paths.resolve(parent_rel)
    _check_installation_path(parent)

    return ResolvedIdentifier(
        owner=owner,
        name=name,
        dir_name=group.strip(name) if group is not None else name,
        parent=parent,
        owner_specified=owner_specified,
    )


async def resolve_owner(session: SyncSession, name: str, owner: Optional[str] = None) -> str:
    """
    Owner of a utility that is not installed yet

    An explicit owner wins, then a matching grouping rule, the manifest
    organization, the configured default owner and finally a prompt.

    Raises:
        ValidationError: If the owner name is malformed
    """
    if owner is None:
        group = session.manifest.find_grouping(name)
        if group is not None and group.owner:
            owner = group.owner
        else:
            owner = await _default_owner(session)

    if not OWNER_NAME_PATTERN.fullmatch(owner or ""):
        raise ValidationError(f'"{owner}" is not a valid owner name')
    return owner


async def _default_owner(session: SyncSession) -> str:
    if session.manifest.org:
        logger.info("using default owner in package.json: %s", session.manifest.org)
        return session.manifest.org
    if session.tool_config.default_owner:
        logger.info("using default owner from tool configuration: %s", session.tool_config.default_owner)
        return session.tool_config.default_owner
    return await session.prompter.ask(PROMPT_OWNER)


def _check_installation_path(path: Path) -> None:
    if not path.exists():
        raise ConfigError(f"Specified installation path does not exist: {path}")
    if not path.is_dir():
        raise ConfigError(f"Specified installation path is not a directory: {path}")


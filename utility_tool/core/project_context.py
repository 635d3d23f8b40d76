"""Discovery of the utilities living in a project"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..api.exceptions import ValidationError
from ..constants import UTILITY_DESCRIPTOR_FILE, EXCLUDED_DIR_NAMES, DOWNLOAD_STAGING_PREFIX
from ..models.manifest import ProjectManifest
from ..models.utility import LocalUtility, UtilityDescriptor
from ..utils.hash_utils import list_utility_files

logger = logging.getLogger(__name__)


def discover_utilities(root: Path) -> List[LocalUtility]:
    """
    Find every utility under a directory

    The walk is top-down in sorted order. A directory holding a descriptor is
    a utility root and is not descended into, so utilities never nest.

    Args:
        root: Directory to scan

    Returns:
        Utilities in discovery order
    """
    root = Path(root).resolve()
    utilities = []
    stack = [root]

    while stack:
        current = stack.pop()
        descriptor_path = current / UTILITY_DESCRIPTOR_FILE

        if descriptor_path.is_file():
            try:
                descriptor = UtilityDescriptor.load(descriptor_path)
            except ValueError as e:
                logger.warning("Skipping unreadable descriptor %s: %s", descriptor_path, e)
                continue
            utilities.append(LocalUtility(
                descriptor=descriptor,
                path=current,
                files=list_utility_files(current),
            ))
            continue

        try:
            children = sorted(
                p for p in current.iterdir()
                if p.is_dir() and not p.is_symlink() and p.name not in EXCLUDED_DIR_NAMES
                and not p.name.startswith(DOWNLOAD_STAGING_PREFIX)
            )
        except OSError as e:
            logger.debug("Cannot list %s: %s", current, e)
            continue

        stack.extend(reversed(children))

    return utilities


@dataclass
class ProjectContext:
    """Snapshot of the utilities present in a project.

    Rebuilt with :meth:`assemble` whenever on-disk state must be observed
    again; it is never updated incrementally.
    """

    root: Path
    manifest: ProjectManifest
    utilities: List[LocalUtility] = field(default_factory=list)

    @classmethod
    def assemble(cls, root: Path, manifest: Optional[ProjectManifest] = None) -> 'ProjectContext':
        """
        Scan the project and build a context

        Args:
            root: Project root
            manifest: Already loaded manifest (loaded from disk otherwise)

        Raises:
            ValidationError: If two utilities share a name
        """
        root = Path(root).resolve()
        if manifest is None:
            manifest = ProjectManifest.load(root)

        utilities = discover_utilities(root)
        seen: Dict[str, Path] = {}
        for utility in utilities:
            if utility.name in seen:
                raise ValidationError(
                    f'utility name "{utility.name}" is used by both {seen[utility.name]} and {utility.path}'
                )
            seen[utility.name] = utility.path

        logger.debug("Found %d utilities under %s", len(utilities), root)
        return cls(root=root, manifest=manifest, utilities=utilities)

    def find(self, name: str) -> Optional[LocalUtility]:
        for utility in self.utilities:
            if utility.name == name:
                return utility
        return None

    def __contains__(self, name: str) -> bool:
        return self.find(name) is not None

    @property
    def names(self) -> List[str]:
        return [u.name for u in self.utilities]

    def utilities_under(self, directory: Path) -> List[LocalUtility]:
        """Utilities located at or below a directory"""
        directory = Path(directory).resolve()
        result = []
        for utility in self.utilities:
            if utility.path == directory or directory in utility.path.parents:
                result.append(utility)
        return result

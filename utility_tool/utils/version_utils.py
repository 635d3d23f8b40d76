"""Version management utilities"""

from typing import Iterable, List, Optional

from ..constants import UpdatePolicy, DEFAULT_UTILITY_VERSION
from ..models.version import Version


def parse_versions(names: Iterable[str]) -> List[Version]:
    """
    Turn branch names into versions

    Args:
        names: Branch names

    Returns:
        Valid versions sorted ascending; other names are dropped
    """
    versions = {}
    for name in names:
        version = Version.parse(name)
        if version is not None:
            versions[version.raw] = version
    return sorted(versions.values(), key=lambda v: (v.key, v.raw))


def latest(versions: List[Version]) -> Optional[Version]:
    """Highest version of an ascending list"""
    return versions[-1] if versions else None


def find_version(versions: List[Version], raw: str) -> Optional[Version]:
    """Version with exactly this raw string"""
    for version in versions:
        if version.raw == raw:
            return version
    return None


def select_version(versions: List[Version],
                   policy: UpdatePolicy,
                   target: Version) -> Optional[Version]:
    """
    Pick the remote version a pull should converge to

    Args:
        versions: Remote versions, ascending
        policy: Update policy of the dependency
        target: Requested or current local version

    Returns:
        Selected version, or None when nothing qualifies (only for ``fixed``)
    """
    if not versions:
        return None

    if policy is UpdatePolicy.FIXED:
        return find_version(versions, target.raw)

    if policy is UpdatePolicy.MAJOR:
        return latest(versions)

    if policy is UpdatePolicy.MINOR:
        candidates = [v for v in versions if v.major <= target.major]
    elif policy is UpdatePolicy.BATCH:
        candidates = [
            v for v in versions
            if (v.major == target.major and v.minor <= target.minor) or v.major < target.major
        ]
    else:
        raise ValueError(f"Unknown update policy: {policy}")

    return latest(candidates) or latest(versions)


def suggest_version(current_version: str = None,
                    bump_type: str = "patch") -> str:
    """
    Suggest next version

    Args:
        current_version: Current version (optional)
        bump_type: Type of bump (major, minor, patch)

    Returns:
        Suggested version string
    """
    current = Version.parse(current_version) if current_version else None
    if current is None:
        return DEFAULT_UTILITY_VERSION

    if bump_type == "major":
        return Version.from_parts(current.major + 1, 0, 0).raw
    if bump_type == "minor":
        return Version.from_parts(current.major, current.minor + 1, 0).raw
    return Version.from_parts(current.major, current.minor, current.patch + 1).raw

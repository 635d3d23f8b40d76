"""Utility descriptor models"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any

from ..constants import (
    UTILITY_DESCRIPTOR_FILE,
    DEFAULT_UTILITY_VERSION,
    DEFAULT_UPDATE_POLICY,
    JSON_INDENT,
    UpdatePolicy,
)
from .version import Version

_DESCRIPTOR_KEYS = ("name", "owner", "version", "hash", "private", "publicRepo", "description", "deps")


@dataclass
class DependencyDescription:
    """A declared dependency on a published utility"""

    owner: str
    repo: str
    version: str
    update_policy: str = DEFAULT_UPDATE_POLICY

    @property
    def policy(self) -> UpdatePolicy:
        """Get UpdatePolicy enum, falling back to the default policy"""
        try:
            return UpdatePolicy(self.update_policy)
        except ValueError:
            return UpdatePolicy(DEFAULT_UPDATE_POLICY)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "owner": self.owner,
            "repo": self.repo,
            "updatePolicy": self.update_policy,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DependencyDescription':
        """Create from dictionary"""
        return cls(
            owner=data.get("owner", ""),
            repo=data.get("repo", ""),
            version=data.get("version", ""),
            update_policy=data.get("updatePolicy", DEFAULT_UPDATE_POLICY),
        )


@dataclass
class UtilityDescriptor:
    """Contents of a utility's ``utils.json``"""

    name: str
    owner: str = ""
    version: str = DEFAULT_UTILITY_VERSION
    hash: str = ""
    private: bool = False
    public_repo: bool = False
    description: str = ""
    deps: Dict[str, DependencyDescription] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def parsed_version(self) -> Optional[Version]:
        """Parsed version, or None if the stored string is malformed"""
        return Version.parse(self.version)

    @property
    def identifier(self) -> str:
        return f"{self.owner}/{self.name}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "name": self.name,
            "owner": self.owner,
            "version": self.version,
            "hash": self.hash,
            "private": self.private,
            "publicRepo": self.public_repo,
            "description": self.description,
            "deps": {name: dep.to_dict() for name, dep in self.deps.items()},
        }
        data.update(self.extra)
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=JSON_INDENT)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UtilityDescriptor':
        """Create from dictionary"""
        deps = {
            name: DependencyDescription.from_dict(dep)
            for name, dep in (data.get("deps") or {}).items()
            if isinstance(dep, dict)
        }
        return cls(
            name=data.get("name", ""),
            owner=data.get("owner", ""),
            version=data.get("version", ""),
            hash=data.get("hash", ""),
            private=bool(data.get("private", False)),
            public_repo=bool(data.get("publicRepo", False)),
            description=data.get("description", ""),
            deps=deps,
            extra={k: v for k, v in data.items() if k not in _DESCRIPTOR_KEYS},
        )

    @classmethod
    def from_json(cls, text: str) -> 'UtilityDescriptor':
        return cls.from_dict(json.loads(text))

    @classmethod
    def load(cls, path: Path) -> 'UtilityDescriptor':
        """Load a descriptor from a utility directory or descriptor file path"""
        path = Path(path)
        if path.is_dir():
            path = path / UTILITY_DESCRIPTOR_FILE
        return cls.from_json(path.read_text(encoding="utf-8"))

    def save(self, utility_dir: Path) -> Path:
        """Write the descriptor into a utility directory"""
        target = Path(utility_dir) / UTILITY_DESCRIPTOR_FILE
        target.write_text(self.to_json(), encoding="utf-8")
        return target


@dataclass
class LocalUtility:
    """A utility discovered under the project root"""

    descriptor: UtilityDescriptor
    path: Path
    files: List[str] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.path, str):
            self.path = Path(self.path)

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def descriptor_path(self) -> Path:
        return self.path / UTILITY_DESCRIPTOR_FILE

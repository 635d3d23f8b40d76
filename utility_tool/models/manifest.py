"""Project manifest model"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any

from ..constants import PROJECT_MANIFEST_FILE, MANIFEST_NAMESPACE, JSON_INDENT
from .utility import DependencyDescription


@dataclass
class GroupingRule:
    """Maps a utility name prefix to an owner and an installation directory"""

    prefix: str
    owner: Optional[str] = None
    installation_destination: Optional[str] = None
    remove_prefix_on_pull: bool = False

    def matches(self, name: str) -> bool:
        return bool(self.prefix) and name.startswith(self.prefix)

    def strip(self, name: str) -> str:
        """Name as installed on disk"""
        if self.remove_prefix_on_pull and self.matches(name):
            return name[len(self.prefix):]
        return name

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {"prefix": self.prefix}
        if self.owner is not None:
            data["owner"] = self.owner
        if self.installation_destination is not None:
            data["installationDestination"] = self.installation_destination
        data["removePrefixOnPull"] = self.remove_prefix_on_pull
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GroupingRule':
        """Create from dictionary"""
        return cls(
            prefix=data.get("prefix", ""),
            owner=data.get("owner"),
            installation_destination=data.get("installationDestination"),
            remove_prefix_on_pull=bool(data.get("removePrefixOnPull", False)),
        )


@dataclass
class ProjectManifest:
    """The ``package.json`` at the project root.

    Only the ``utility-tool`` namespace is interpreted; every other key is kept
    as-is and written back unchanged.
    """

    path: Path
    data: Dict[str, Any] = field(default_factory=dict)
    org: Optional[str] = None
    dest: Optional[str] = None
    dependencies: Dict[str, DependencyDescription] = field(default_factory=dict)
    grouping: List[GroupingRule] = field(default_factory=list)
    has_namespace: bool = False
    _saved_data: Optional[Dict[str, Any]] = field(default=None, repr=False)

    @classmethod
    def load(cls, project_root: Path) -> 'ProjectManifest':
        """Load the manifest of a project root; a missing file yields an empty manifest"""
        path = Path(project_root) / PROJECT_MANIFEST_FILE
        if not path.exists():
            return cls(path=path)

        text = path.read_text(encoding="utf-8")
        data = json.loads(text) if text.strip() else {}
        manifest = cls.from_dict(path, data)
        manifest._saved_data = json.loads(json.dumps(data))
        return manifest

    @classmethod
    def from_dict(cls, path: Path, data: Dict[str, Any]) -> 'ProjectManifest':
        """Create from the parsed manifest document"""
        namespace = data.get(MANIFEST_NAMESPACE)
        if not isinstance(namespace, dict):
            return cls(path=Path(path), data=data)

        return cls(
            path=Path(path),
            data=data,
            org=namespace.get("org"),
            dest=namespace.get("dest"),
            dependencies={
                name: DependencyDescription.from_dict(dep)
                for name, dep in (namespace.get("dependencies") or {}).items()
                if isinstance(dep, dict)
            },
            grouping=[
                GroupingRule.from_dict(rule)
                for rule in (namespace.get("grouping") or [])
                if isinstance(rule, dict)
            ],
            has_namespace=True,
        )

    @property
    def root(self) -> Path:
        return self.path.parent

    def find_grouping(self, name: str) -> Optional[GroupingRule]:
        """First grouping rule whose prefix matches the name"""
        for rule in self.grouping:
            if rule.matches(name):
                return rule
        return None

    def set_dependency(self, name: str, dependency: DependencyDescription) -> None:
        self.dependencies[name] = dependency
        self.has_namespace = True

    def remove_dependency(self, name: str) -> bool:
        return self.dependencies.pop(name, None) is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the manifest document, preserving foreign keys"""
        data = dict(self.data)
        if not self.has_namespace:
            return data

        namespace = dict(data.get(MANIFEST_NAMESPACE) or {})
        if self.org is not None:
            namespace["org"] = self.org
        if self.dest is not None:
            namespace["dest"] = self.dest
        namespace["dependencies"] = {
            name: dep.to_dict() for name, dep in self.dependencies.items()
        }
        namespace["grouping"] = [rule.to_dict() for rule in self.grouping]
        data[MANIFEST_NAMESPACE] = namespace
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=JSON_INDENT)

    def save(self) -> bool:
        """Write the manifest if its content changed.

        Returns:
            True if the file was written
        """
        data = self.to_dict()
        if self._saved_data is None and not self.has_namespace:
            return False
        if data == self._saved_data:
            return False
        self.path.write_text(json.dumps(data, indent=JSON_INDENT), encoding="utf-8")
        self._saved_data = json.loads(json.dumps(data))
        self.data = data
        return True

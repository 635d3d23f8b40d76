"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from utility_tool.core.prompt import Prompter
from utility_tool.core.session import SyncSession
from utility_tool.models.config import ToolConfig
from utility_tool.models.utility import DependencyDescription, UtilityDescriptor
from utility_tool.registry.memory import MemoryRegistry, utility_branch
from utility_tool.utils.hash_utils import calculate_directory_hash


class ScriptedPrompter(Prompter):
    """Prompter answering from queues and recording every question"""

    def __init__(self, answers: Optional[List[str]] = None, confirms: Optional[List[bool]] = None):
        super().__init__()
        self.answers = list(answers or [])
        self.confirms = list(confirms or [])
        self.questions: List[str] = []

    def _ask_sync(self, question, password, default):
        self.questions.append(question)
        if not self.answers:
            raise AssertionError(f"unexpected question: {question}")
        return self.answers.pop(0)

    def _select_sync(self, question, choices, default):
        return self._ask_sync(question, False, default)

    def _confirm_sync(self, question, default):
        self.questions.append(question)
        if not self.confirms:
            raise AssertionError(f"unexpected confirmation: {question}")
        return self.confirms.pop(0)


def write_files(directory: Path, files: Dict[str, str]) -> None:
    for name, content in files.items():
        target = directory / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


class ProjectBuilder:
    """Builds a project on disk and matching registry content"""

    def __init__(self, base: Path):
        self.root = base / "project"
        self.scratch = base / "scratch"
        self.root.mkdir()
        self.scratch.mkdir()
        (self.root / "utils").mkdir()
        self.write_manifest()

    @staticmethod
    def dep(owner: str, name: str, version: str, policy: str = "minor") -> DependencyDescription:
        return DependencyDescription(owner=owner, repo=name, version=version, update_policy=policy)

    def write_manifest(self, org: Optional[str] = "acme", dest: Optional[str] = "./utils",
                       dependencies: Optional[Dict[str, DependencyDescription]] = None,
                       grouping: Optional[List[dict]] = None, **extra) -> Path:
        namespace = {"dependencies": {n: d.to_dict() for n, d in (dependencies or {}).items()},
                     "grouping": grouping or []}
        if org is not None:
            namespace["org"] = org
        if dest is not None:
            namespace["dest"] = dest
        data = {"name": "demo-app", "version": "1.0.0", **extra, "utility-tool": namespace}

        path = self.root / "package.json"
        path.write_text(json.dumps(data, indent=4), encoding="utf-8")
        return path

    def manifest(self) -> dict:
        return json.loads((self.root / "package.json").read_text(encoding="utf-8"))

    def dependencies(self) -> dict:
        return self.manifest()["utility-tool"]["dependencies"]

    @staticmethod
    def default_files(name: str, version: str) -> Dict[str, str]:
        return {"index.js": f"// {name} {version}\n", "README.md": f"# {name}\n"}

    def add_utility(self, name: str, version: str = "1.0.0", owner: str = "acme",
                    files: Optional[Dict[str, str]] = None,
                    deps: Optional[Dict[str, DependencyDescription]] = None,
                    private: bool = False, parent: str = "utils") -> Path:
        """Create a utility whose stored hash matches its files"""
        directory = self.root / parent / name
        directory.mkdir(parents=True)
        write_files(directory, files if files is not None else self.default_files(name, version))

        UtilityDescriptor(
            name=name,
            owner=owner,
            version=version,
            hash=calculate_directory_hash(directory),
            private=private,
            deps=dict(deps or {}),
        ).save(directory)
        return directory

    def remote(self, name: str, version: str, owner: str = "acme",
               files: Optional[Dict[str, str]] = None,
               deps: Optional[Dict[str, DependencyDescription]] = None,
               hash: Optional[str] = None) -> Dict[str, bytes]:
        """Content of a published version branch"""
        files = files if files is not None else self.default_files(name, version)
        staging = self.scratch / f"{owner}-{name}-{version}"
        staging.mkdir()
        write_files(staging, files)

        descriptor = UtilityDescriptor(
            name=name,
            owner=owner,
            version=version,
            hash=hash if hash is not None else calculate_directory_hash(staging),
            deps=dict(deps or {}),
        )
        return utility_branch(descriptor, files)

    def descriptor(self, name: str, parent: str = "utils") -> UtilityDescriptor:
        return UtilityDescriptor.load(self.root / parent / name)

    def session(self, registry, prompter: Optional[Prompter] = None,
                tool_config: Optional[ToolConfig] = None) -> SyncSession:
        return SyncSession(self.root, registry, prompter=prompter or ScriptedPrompter(),
                           tool_config=tool_config, cpu_count=1)


@pytest.fixture
def project(tmp_path: Path) -> ProjectBuilder:
    """A project with package.json (org acme, dest ./utils) and an empty utils directory"""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def registry() -> MemoryRegistry:
    return MemoryRegistry()


@pytest.fixture(autouse=True)
def isolated_tool_home(tmp_path: Path, monkeypatch):
    """Keep the user's configuration, tokens and environment out of tests"""
    home = tmp_path / "tool-home"
    monkeypatch.setenv("UTILITY_TOOL_HOME", str(home))
    for variable in ("UTILITY_TOOL_CONFIG", "UTILITY_TOOL_API_URL", "UTILITY_TOOL_DEFAULT_OWNER",
                     "UTILITY_TOOL_LOG_LEVEL", "UTILITY_TOOL_TOKEN"):
        monkeypatch.delenv(variable, raising=False)
    return home

"""Path resolution module for utility-tool"""

import os
from pathlib import Path
from typing import Optional, Union

from ..constants import (
    PROJECT_MANIFEST_FILE,
    TOOL_HOME_DIR,
    TOOL_CONFIG_FILE,
    TOKENS_FILE,
    ENV_TOOL_HOME,
    ENV_CONFIG_PATH,
)


def find_project_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find the project root by walking up to the nearest manifest

    Args:
        start_path: Starting directory (defaults to current directory)

    Returns:
        Project root path or None if not found
    """
    current = Path(start_path).resolve() if start_path else Path.cwd().resolve()

    while True:
        if (current / PROJECT_MANIFEST_FILE).is_file():
            return current
        if current == current.parent:
            return None
        current = current.parent


def get_tool_home() -> Path:
    """Directory holding user-level configuration and stored tokens"""
    home = os.environ.get(ENV_TOOL_HOME)
    if home:
        return Path(home).expanduser().resolve()
    return Path.home() / TOOL_HOME_DIR


def get_tool_config_path() -> Path:
    path = os.environ.get(ENV_CONFIG_PATH)
    if path:
        return Path(path).expanduser().resolve()
    return get_tool_home() / TOOL_CONFIG_FILE


def get_tokens_path() -> Path:
    return get_tool_home() / TOKENS_FILE


class PathResolver:
    """Resolves paths within a project"""

    def __init__(self, project_root: Union[str, Path]):
        """Initialize path resolver

        Args:
            project_root: Root directory of the project
        """
        self.project_root = Path(project_root).resolve()

    def resolve(self, path: Union[str, Path]) -> Path:
        """Resolve a path relative to project root

        Args:
            path: Path to resolve (can be relative or absolute)

        Returns:
            Resolved absolute path
        """
        path = Path(path)

        if path.is_absolute():
            return path

        return (self.project_root / path).resolve()

    def relative(self, path: Union[str, Path]) -> str:
        """Project-relative POSIX path, as stored in the manifest"""
        path = Path(path).resolve()
        try:
            rel = path.relative_to(self.project_root)
        except ValueError:
            return str(path)
        return "./" + rel.as_posix() if rel.parts else "."

    def get_manifest_path(self) -> Path:
        return self.project_root / PROJECT_MANIFEST_FILE

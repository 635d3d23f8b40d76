"""Core synchronization machinery"""

from .path_resolver import PathResolver, find_project_root, get_tool_home, get_tool_config_path
from .project_context import ProjectContext, discover_utilities
from .dependency_resolver import collect_dependencies
from .prompt import Prompter
from .tokens import TokenStore, EnvironmentTokenStore, FileTokenStore, ChainedTokenStore, TokenProvider
from .session import SyncSession
from .identifier import ResolvedIdentifier, resolve_identifier, resolve_owner, split_identifier, is_valid_name

__all__ = [
    "PathResolver",
    "find_project_root",
    "get_tool_home",
    "get_tool_config_path",
    "ProjectContext",
    "discover_utilities",
    "collect_dependencies",
    "Prompter",
    "TokenStore",
    "EnvironmentTokenStore",
    "FileTokenStore",
    "ChainedTokenStore",
    "TokenProvider",
    "SyncSession",
    "ResolvedIdentifier",
    "resolve_identifier",
    "resolve_owner",
    "split_identifier",
    "is_valid_name",
]

"""Utility functions for utility-tool"""

from .hash_utils import list_utility_files, calculate_directory_hash, calculate_directory_hash_async
from .async_utils import run_async, run_in_chunks, NamedLocks, locked
from .version_utils import parse_versions, latest, find_version, select_version, suggest_version

__all__ = [
    "list_utility_files",
    "calculate_directory_hash",
    "calculate_directory_hash_async",
    "run_async",
    "run_in_chunks",
    "NamedLocks",
    "locked",
    "parse_versions",
    "latest",
    "find_version",
    "select_version",
    "suggest_version",
]

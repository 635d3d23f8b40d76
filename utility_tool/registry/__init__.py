"""Remote registry implementations"""

from .base import RemoteRegistry
from .github import GitHubRegistry
from .memory import MemoryRegistry, utility_branch
from .factory import RegistryFactory

__all__ = [
    "RemoteRegistry",
    "GitHubRegistry",
    "MemoryRegistry",
    "utility_branch",
    "RegistryFactory",
]

"""Utility Tool - share small source utilities between projects.

Utilities are directories carrying a ``utils.json`` descriptor. Each
published version lives on a branch named after the version in the
utility's own repository, and projects pull them by update policy.
"""

from .__version__ import __version__, __version_info__, __author__, __license__

# Exceptions
from .api.exceptions import (
    UtilityToolError,
    ValidationError,
    UtilityNotFoundError,
    VersionNotFoundError,
    TransportError,
    ConfigError,
    ProjectNotFoundError,
    UserCancelledError,
)

# Core API
from .api.puller import Puller, pull
from .api.pusher import Pusher, push

# Data models
from .models.version import Version
from .models.utility import DependencyDescription, UtilityDescriptor
from .models.manifest import ProjectManifest
from .models.result import PullResult, PushResult, CleanupResult, SyncReport

# Utility functions
from .utils import calculate_directory_hash, select_version, suggest_version

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__license__",

    # Main classes
    "Puller",
    "Pusher",

    # Core API functions
    "pull",
    "push",

    # Data models
    "Version",
    "DependencyDescription",
    "UtilityDescriptor",
    "ProjectManifest",
    "PullResult",
    "PushResult",
    "CleanupResult",
    "SyncReport",

    # Exceptions
    "UtilityToolError",
    "ValidationError",
    "UtilityNotFoundError",
    "VersionNotFoundError",
    "TransportError",
    "ConfigError",
    "ProjectNotFoundError",
    "UserCancelledError",

    # Utility functions
    "calculate_directory_hash",
    "select_version",
    "suggest_version",
]

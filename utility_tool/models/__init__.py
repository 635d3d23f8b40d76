"""Data models for utility-tool"""

from .version import Version, compare
from .utility import DependencyDescription, UtilityDescriptor, LocalUtility
from .manifest import GroupingRule, ProjectManifest
from .config import ToolConfig, RegistryConfig, ParallelismConfig
from .result import (
    PullState,
    PushState,
    CleanupState,
    PullResult,
    PushResult,
    CleanupResult,
    CheckResult,
    SyncReport,
)

__all__ = [
    "Version",
    "compare",
    "DependencyDescription",
    "UtilityDescriptor",
    "LocalUtility",
    "GroupingRule",
    "ProjectManifest",
    "ToolConfig",
    "RegistryConfig",
    "ParallelismConfig",
    "PullState",
    "PushState",
    "CleanupState",
    "PullResult",
    "PushResult",
    "CleanupResult",
    "CheckResult",
    "SyncReport",
]

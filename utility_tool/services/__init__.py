"""Service layer for utility-tool"""

from .config_service import ConfigService
from .project_service import ProjectService, check_utility
from .pull_service import PullService, parse_policy
from .push_service import PushService

__all__ = [
    "ConfigService",
    "ProjectService",
    "check_utility",
    "PullService",
    "parse_policy",
    "PushService",
]

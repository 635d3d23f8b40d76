"""API layer for utility-tool"""

from .exceptions import (
    UtilityToolError,
    ValidationError,
    UtilityNotFoundError,
    VersionNotFoundError,
    TransportError,
    ConfigError,
    ProjectNotFoundError,
    UserCancelledError,
)
from .puller import Puller, pull
from .pusher import Pusher, push

__all__ = [
    # Main classes
    "Puller",
    "Pusher",

    # Convenience functions
    "pull",
    "push",

    # Exceptions
    "UtilityToolError",
    "ValidationError",
    "UtilityNotFoundError",
    "VersionNotFoundError",
    "TransportError",
    "ConfigError",
    "ProjectNotFoundError",
    "UserCancelledError",
]

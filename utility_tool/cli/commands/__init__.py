# utility_tool/cli/commands/__init__.py
"""CLI commands"""

from . import init
from . import pull
from . import push
from . import query
from . import manage
from . import config

__all__ = [
    "init",
    "pull",
    "push",
    "query",
    "manage",
    "config",
]

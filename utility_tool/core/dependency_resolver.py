"""Transitive dependency closure"""

import logging
from typing import Dict, FrozenSet

from .project_context import ProjectContext
from ..models.utility import DependencyDescription

logger = logging.getLogger(__name__)

Dependencies = Dict[str, DependencyDescription]


def collect_dependencies(context: ProjectContext,
                         declared: Dependencies,
                         guard_cycles: bool = True) -> Dependencies:
    """
    Expand a dependency map into its transitive closure

    Each entry is recorded, then, if the utility is present locally, its own
    dependencies (minus any pointing back at it) are merged in. Later merges
    overwrite earlier entries of the same name.

    Args:
        context: Project context used to look up local utilities
        declared: Dependency map to expand
        guard_cycles: Stop expanding a utility already on the current
            expansion path, so longer cycles terminate

    Returns:
        Name -> dependency description for the whole closure
    """
    return _collect(context, declared, frozenset(), guard_cycles)


def _collect(context: ProjectContext,
             declared: Dependencies,
             path: FrozenSet[str],
             guard_cycles: bool) -> Dependencies:
    deps: Dependencies = {}

    for name, description in declared.items():
        deps[name] = description

        utility = context.find(name)
        if utility is None:
            continue

        if guard_cycles and name in path:
            logger.debug("Dependency cycle through %s, not expanding again", name)
            continue

        children = {
            child: child_description
            for child, child_description in utility.descriptor.deps.items()
            if child != name
        }
        deps.update(_collect(context, children, path | {name}, guard_cycles))

    return deps

"""Traces multi-version packages up to their direct dependents and the source tree."""

import logging
from collections import deque
from typing import Deque, List, Optional, Set, Tuple

from .models import (
    LineagePath,
    LineageRecord,
    MultiVersionGroup,
    PackageGraph,
    PackageId,
    ParentVersionMap,
)
from .parent_walker import ensure_upward_acyclic, walk_parents
from .version_parser import VersionParser

logger = logging.getLogger(__name__)

# (current package, direct dependent on this path, previous package on this path)
_State = Tuple[PackageId, PackageId, PackageId]


def _trace_version(
    graph: PackageGraph,
    pid: PackageId,
    parent_map: ParentVersionMap
) -> List[LineagePath]:
    """Collect the distinct lineage paths above one version-node."""
    paths: List[LineagePath] = []
    recorded: Set[LineagePath] = set()

    def record(direct: PackageId, top_level_dep: Optional[PackageId], top_level: Optional[PackageId]):
        top_level_versions = ()
        if top_level is not None:
            top_level_versions = tuple(sorted(parent_map.get(top_level, ()), key=VersionParser.sort_key))
        path = LineagePath(direct, top_level_dep, top_level, top_level_versions)
        if path not in recorded:
            recorded.add(path)
            paths.append(path)

    seen: Set[_State] = set()
    frontier: Deque[_State] = deque()
    for dependent in graph.dependents_of(pid):
        state = (dependent, dependent, pid)
        seen.add(state)
        frontier.append(state)

    while frontier:
        current, direct, previous = frontier.popleft()
        node = graph[current]

        if node.is_top_level:
            # The direct dependent may itself live in the source tree
            top_level_dep = None if current == direct else previous
            record(direct, top_level_dep, current)
            continue

        if not node.dependents:
            record(direct, None, None)
            continue

        for dependent in graph.dependents_of(current):
            state = (dependent, direct, current)
            if state not in seen:
                seen.add(state)
                frontier.append(state)

    return paths


def trace_lineage(
    graph: PackageGraph,
    group: MultiVersionGroup,
    parent_map: Optional[ParentVersionMap] = None
) -> LineageRecord:
    """
    Trace every version of a multi-version package up to the top level.

    A version that is itself a top-level package has no lineage.

    Args:
        graph: The package graph
        group: The multi-version group
        parent_map: Result of walk_parents for this group; computed if omitted

    Returns:
        LineageRecord with the paths for every version

    Raises:
        CycleDetectedError: If an upward path loops back on itself
    """
    if parent_map is None:
        parent_map = walk_parents(graph, group)
    else:
        ensure_upward_acyclic(graph, group.ids)

    record = LineageRecord(name=group.name)
    for pid in group.ids:
        if graph[pid].is_top_level:
            logger.debug(f"{pid} is a top-level package, no lineage to trace")
            record.versions[pid.version] = []
            continue
        record.versions[pid.version] = _trace_version(graph, pid, parent_map)

    logger.debug(
        f"{group.name}: {len(record.direct_dependents)} direct dependent(s), "
        f"{len(record.top_level_packages)} top-level package(s)"
    )
    return record

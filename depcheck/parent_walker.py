"""Upward walk from the versions of a multi-version package to all of its ancestors."""

import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Set, Tuple

from .exceptions import CycleDetectedError
from .models import MultiVersionGroup, PackageGraph, PackageId, ParentVersionMap

logger = logging.getLogger(__name__)

_IN_PROGRESS = 1
_DONE = 2


def find_upward_cycle(graph: PackageGraph, starts: Iterable[PackageId]) -> Optional[List[PackageId]]:
    """
    Look for a cycle among the packages reachable upward (through dependents) from starts.

    Returns:
        The cycle as a path that begins and ends with the same package, or None
    """
    state: Dict[PackageId, int] = {}

    for start in starts:
        if start in state:
            continue

        state[start] = _IN_PROGRESS
        path = [start]
        stack = [iter(graph.dependents_of(start))]

        while stack:
            for dependent in stack[-1]:
                seen = state.get(dependent)
                if seen == _IN_PROGRESS:
                    return path[path.index(dependent):] + [dependent]
                if seen is None:
                    state[dependent] = _IN_PROGRESS
                    path.append(dependent)
                    stack.append(iter(graph.dependents_of(dependent)))
                    break
            else:
                state[path.pop()] = _DONE
                stack.pop()

    return None


def ensure_upward_acyclic(graph: PackageGraph, starts: Iterable[PackageId]) -> None:
    """
    Raises:
        CycleDetectedError: If the upward-reachable subgraph contains a cycle
    """
    cycle = find_upward_cycle(graph, starts)
    if cycle:
        raise CycleDetectedError(cycle)


def walk_parents(graph: PackageGraph, group: MultiVersionGroup) -> ParentVersionMap:
    """
    Find which versions of a group's package are reachable beneath each ancestor.

    Every version-node starts a breadth-first walk through dependents carrying
    its own version as origin. Each (package, origin) pair is expanded at most
    once, so shared ancestors in diamond-shaped graphs are not revisited.

    Args:
        graph: The package graph
        group: The multi-version group to walk from

    Returns:
        Map of ancestor -> frozenset of reachable versions (complete, all origins folded in)

    Raises:
        CycleDetectedError: If an upward path loops back on itself
    """
    ensure_upward_acyclic(graph, group.ids)

    parents: Dict[PackageId, Set[str]] = {}
    visited: Set[Tuple[PackageId, str]] = set()
    frontier: Deque[Tuple[PackageId, str]] = deque((pid, pid.version) for pid in group.ids)

    while frontier:
        pid, origin = frontier.popleft()
        for dependent in graph.dependents_of(pid):
            parents.setdefault(dependent, set()).add(origin)
            if (dependent, origin) not in visited:
                visited.add((dependent, origin))
                frontier.append((dependent, origin))

    logger.debug(f"{group.name}: {len(parents)} ancestor(s) reach {len(group.ids)} versions")
    return {pid: frozenset(versions) for pid, versions in parents.items()}

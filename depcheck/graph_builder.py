"""Builds the package graph from lock file records."""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Set, Tuple

from .exceptions import UnresolvedReferenceError
from .models import PackageGraph, PackageId, PackageNode, PackageRecord

logger = logging.getLogger(__name__)


class PackageGraphBuilder:
    """
    Builds an immutable PackageGraph from lock file records in two passes:

    Pass 1: Register every record
    - One node per (name, version); repeated records are merged
    - Dependency references are collected but not yet checked

    Pass 2: Resolve and link
    - Every dependency reference must name a registered package
    - All unresolved references are reported together
    - Dependents are derived as the inverse of dependencies
    """

    def build(self, records: Iterable[PackageRecord]) -> PackageGraph:
        """
        Build the package graph.

        Args:
            records: Lock file records, in lock file order

        Returns:
            The fully linked PackageGraph

        Raises:
            UnresolvedReferenceError: If any dependency reference has no matching record
        """
        sources: Dict[PackageId, str] = {}
        top_level: Dict[PackageId, bool] = {}
        dependencies: Dict[PackageId, Dict[PackageId, None]] = {}  # dict as ordered set

        # PASS 1: register records
        for record in records:
            pid = record.id
            if pid in dependencies:
                logger.warning(f"Duplicate lock file entry for {pid}, merging dependencies")
                top_level[pid] = top_level[pid] or record.is_top_level
                if top_level[pid]:
                    # A top-level package has no upstream source
                    sources.pop(pid, None)
            else:
                dependencies[pid] = {}
                top_level[pid] = record.is_top_level
                if record.source is not None:
                    sources[pid] = record.source

            for dep_name, dep_version in record.dependencies:
                dependencies[pid][PackageId(dep_name, dep_version)] = None

        logger.info(f"Registered {len(dependencies)} packages")

        # PASS 2: resolve references and derive dependents
        unresolved: List[Tuple[PackageId, PackageId]] = []
        dependents: Dict[PackageId, Set[PackageId]] = defaultdict(set)
        for pid, deps in dependencies.items():
            for dep in deps:
                if dep not in dependencies:
                    unresolved.append((pid, dep))
                    continue
                dependents[dep].add(pid)

        if unresolved:
            logger.error(f"Found {len(unresolved)} unresolved dependency reference(s)")
            raise UnresolvedReferenceError(unresolved)

        nodes: Dict[PackageId, PackageNode] = {}
        edge_count = 0
        for pid, deps in dependencies.items():
            nodes[pid] = PackageNode(
                id=pid,
                is_top_level=top_level[pid],
                dependencies=frozenset(deps),
                dependents=frozenset(dependents.get(pid, ())),
                source=sources.get(pid)
            )
            edge_count += len(deps)

        logger.info(f"Built package graph: {len(nodes)} packages, {edge_count} dependency edges")
        return PackageGraph(nodes)


def build_graph(records: Iterable[PackageRecord]) -> PackageGraph:
    """Build a PackageGraph from records (shortcut for PackageGraphBuilder().build)."""
    return PackageGraphBuilder().build(records)

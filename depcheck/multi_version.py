"""Detection of packages present at more than one version."""

import logging
from collections import defaultdict
from typing import Dict, List

from .models import MultiVersionGroup, PackageGraph, PackageId

logger = logging.getLogger(__name__)


def detect_multi_versions(graph: PackageGraph) -> List[MultiVersionGroup]:
    """
    Group the graph's packages by name and keep names with two or more versions.

    Args:
        graph: The package graph

    Returns:
        Multi-version groups sorted by package name, versions in ascending order
    """
    by_name: Dict[str, List[PackageId]] = defaultdict(list)
    for pid in graph:
        by_name[pid.name].append(pid)

    groups = [
        MultiVersionGroup(name=name, ids=tuple(sorted(ids)))
        for name, ids in sorted(by_name.items())
        if len(ids) > 1
    ]

    logger.info(f"Found {len(groups)} package(s) with multiple versions out of {len(by_name)} names")
    for group in groups:
        logger.debug(f"  {group.name}: {', '.join(group.versions)}")
    return groups

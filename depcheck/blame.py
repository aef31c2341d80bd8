"""Assigns responsibility for multi-version dependencies to ancestor packages.

An ancestor that reaches two or more versions of a package is to blame for the
duplication. It is only *indirectly* to blame when exactly one of its own
dependencies reaches the very same set of versions: that dependency explains
the duplication on its own. Otherwise the ancestor is *directly* to blame,
because it depends on several versions itself or combines them from more
than one dependency.

Packages that reach a single version are never blamed.
"""

import logging
from typing import Dict, Iterable, List

from .models import (
    BlameEntry,
    BlameKind,
    GroupReport,
    MultiVersionGroup,
    PackageBlame,
    PackageGraph,
    PackageId,
    ParentVersionMap,
)
from .version_parser import VersionParser

logger = logging.getLogger(__name__)


def _ordered(versions: Iterable[str]) -> tuple:
    return tuple(sorted(versions, key=VersionParser.sort_key))


def _version_sources(
    dependencies: List[PackageId],
    group: MultiVersionGroup,
    parent_map: ParentVersionMap
) -> tuple:
    """Map each version to the dependencies that bring it in."""
    group_ids = set(group.ids)
    sources: Dict[str, List[PackageId]] = {}

    for dep in dependencies:
        if dep in group_ids:
            sources.setdefault(dep.version, []).append(dep)
        for version in parent_map.get(dep, ()):
            sources.setdefault(version, []).append(dep)

    return tuple(
        (version, tuple(sources[version]))
        for version in _ordered(sources)
    )


def classify_blame(
    graph: PackageGraph,
    group: MultiVersionGroup,
    parent_map: ParentVersionMap
) -> List[BlameEntry]:
    """
    Classify every ancestor that reaches more than one version of the group's package.

    Args:
        graph: The package graph
        group: The multi-version group
        parent_map: Complete result of walk_parents for this group

    Returns:
        One BlameEntry per ancestor with two or more versions, sorted by package
    """
    entries: List[BlameEntry] = []

    for ancestor in sorted(parent_map):
        versions = parent_map[ancestor]
        if len(versions) < 2:
            continue

        node = graph[ancestor]
        dependencies = graph.dependencies_of(ancestor)
        carriers = [dep for dep in dependencies if parent_map.get(dep) == versions]

        if len(carriers) == 1:
            entry = BlameEntry(
                package=ancestor,
                name=group.name,
                kind=BlameKind.INDIRECT,
                versions=_ordered(versions),
                via=carriers[0],
                top_level=node.is_top_level
            )
        else:
            entry = BlameEntry(
                package=ancestor,
                name=group.name,
                kind=BlameKind.DIRECT,
                versions=_ordered(versions),
                sources=_version_sources(dependencies, group, parent_map),
                top_level=node.is_top_level
            )

        logger.debug(f"{group.name}: {ancestor} is {entry.kind.value}ly to blame")
        entries.append(entry)

    return entries


def summarize_blame(group_reports: Iterable[GroupReport]) -> List[PackageBlame]:
    """
    Fold per-group blame into one row per package.

    Returns:
        PackageBlame rows sorted by package, group names sorted within each row
    """
    by_package: Dict[PackageId, PackageBlame] = {}

    for report in group_reports:
        for entry in report.blame:
            blame = by_package.get(entry.package)
            if blame is None:
                blame = PackageBlame(package=entry.package, top_level=entry.top_level)
                by_package[entry.package] = blame
            if entry.is_direct:
                blame.direct.append(entry.name)
            else:
                blame.indirect.append(entry.name)

    for blame in by_package.values():
        blame.direct.sort()
        blame.indirect.sort()

    return [by_package[pid] for pid in sorted(by_package)]

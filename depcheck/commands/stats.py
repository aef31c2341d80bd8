"""Stats command for showing lock file statistics."""

import logging
from typing import Dict

from ..models import DuplicateReport, PackageGraph

logger = logging.getLogger(__name__)


def collect_stats(graph: PackageGraph, report: DuplicateReport) -> Dict[str, int]:
    """Compute package, duplicate and blame counts for a lock file."""
    names = {pid.name for pid in graph}
    top_level = len(graph.top_level_packages())
    duplicated_versions = sum(len(group_report.versions) for group_report in report.groups.values())

    stats = {
        'total_packages': len(graph),
        'unique_names': len(names),
        'top_level_packages': top_level,
        'dependency_packages': len(graph) - top_level,
        'multi_version_packages': len(report.groups),
        'duplicated_versions': duplicated_versions,
        # Versions that could go away if every duplicate collapsed to one version
        'extra_versions': duplicated_versions - len(report.groups),
    }

    if report.options.include_blame:
        counts = report.blame_counts()
        stats.update({
            'blamed_top_level': len(report.top_level_blame()),
            'blamed_dependencies': len(report.dependency_blame()),
            'blamed_direct_only': counts['direct'],
            'blamed_indirect_only': counts['indirect'],
            'blamed_both': counts['both'],
        })

    return stats


def show_stats(graph: PackageGraph, report: DuplicateReport) -> None:
    """Print statistics about an analyzed lock file.

    Args:
        graph: The package graph
        report: Analysis report for the graph
    """
    stats = collect_stats(graph, report)

    print("Lock File Statistics:")
    print(f"  Total Packages: {stats['total_packages']}")
    print(f"  Unique Names: {stats['unique_names']}")
    print(f"  Top Level Packages: {stats['top_level_packages']}")
    print(f"  Dependency Packages: {stats['dependency_packages']}")
    print(f"  Multi Version Packages: {stats['multi_version_packages']}")
    print(f"  Duplicated Versions: {stats['duplicated_versions']} ({stats['extra_versions']} extra)")

    if 'blamed_top_level' in stats:
        print("Blame:")
        print(f"  Top Level Packages to Blame: {stats['blamed_top_level']}")
        print(f"  Dependencies to Blame: {stats['blamed_dependencies']}")
        print(f"  Direct Only: {stats['blamed_direct_only']}")
        print(f"  Indirect Only: {stats['blamed_indirect_only']}")
        print(f"  Direct and Indirect: {stats['blamed_both']}")

"""Runs the multi-version analysis over a package graph."""

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Iterable, List, Optional

from .blame import classify_blame, summarize_blame
from .graph_builder import PackageGraphBuilder
from .lineage import trace_lineage
from .models import (
    AnalysisOptions,
    DuplicateReport,
    GroupReport,
    MultiVersionGroup,
    PackageGraph,
    PackageRecord,
)
from .multi_version import detect_multi_versions
from .parent_walker import walk_parents

logger = logging.getLogger(__name__)


def analyze_group(graph: PackageGraph, group: MultiVersionGroup, options: AnalysisOptions) -> GroupReport:
    """Walk, blame and trace a single group. Only reads the shared graph."""
    report = GroupReport(group=group)
    if not options.needs_parent_map:
        return report

    parent_map = walk_parents(graph, group)
    if options.include_blame:
        report.blame = classify_blame(graph, group, parent_map)
    if options.include_lineage:
        report.lineage = trace_lineage(graph, group, parent_map)
    return report


class DuplicateAnalyzer:
    """
    Finds multi-version packages and, optionally, who is to blame and how they are reached.

    Groups are independent of each other. With max_workers > 1 they are
    analyzed on a thread pool; the report is the same either way.
    """

    def __init__(self, options: Optional[AnalysisOptions] = None):
        self.options = options or AnalysisOptions()

    def analyze_records(self, records: Iterable[PackageRecord]) -> DuplicateReport:
        """Build the graph from lock file records and analyze it."""
        graph = PackageGraphBuilder().build(records)
        return self.analyze(graph)

    def analyze(self, graph: PackageGraph) -> DuplicateReport:
        """
        Analyze a package graph.

        Args:
            graph: The package graph

        Returns:
            DuplicateReport keyed by package name in name order
        """
        groups = detect_multi_versions(graph)
        reports = self._analyze_groups(graph, groups)

        report = DuplicateReport(
            groups={group_report.name: group_report for group_report in reports},
            options=self.options
        )
        if self.options.include_blame:
            report.package_blame = summarize_blame(reports)

        logger.info(
            f"Analysis complete: {len(report.groups)} multi-version package(s), "
            f"{len(report.package_blame)} package(s) to blame"
        )
        return report

    def _analyze_groups(self, graph: PackageGraph, groups: List[MultiVersionGroup]) -> List[GroupReport]:
        task = partial(analyze_group, graph, options=self.options)

        if self.options.max_workers == 1 or len(groups) < 2 or not self.options.needs_parent_map:
            return [task(group) for group in groups]

        logger.info(f"Analyzing {len(groups)} groups with {self.options.max_workers} workers")
        with ThreadPoolExecutor(max_workers=self.options.max_workers) as executor:
            # map() yields in submission order, so the report stays in group order
            return list(executor.map(task, groups))

"""Output formatters for various formats."""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from packageurl import PackageURL
from cyclonedx.model.bom import Bom
from cyclonedx.model.component import Component, ComponentType
from cyclonedx.output.json import JsonV1Dot6

from .models import (
    BlameEntry,
    DuplicateReport,
    GroupReport,
    LineagePath,
    PackageBlame,
    PackageGraph,
    PackageId,
)

logger = logging.getLogger(__name__)

NO_DUPLICATES = "No duplicate dependencies found."


class OutputFormatter:
    """Formatter for various output formats."""

    @staticmethod
    def format_as_text(
        report: DuplicateReport,
        blame_mode: Optional[str] = None,
        blame_detail: bool = False,
        show_dependents: bool = False
    ) -> str:
        """
        Format the report as human readable text.

        Args:
            report: Analysis report
            blame_mode: None, 'top-level' (blame for source tree packages) or 'all'
            blame_detail: Show which dependencies bring in each version
            show_dependents: Show direct dependent / top-level lineage per version
        """
        if not report.has_duplicates:
            return NO_DUPLICATES + '\n'

        lines: List[str] = []
        entries = OutputFormatter._blame_entries_by_package(report)

        if blame_mode in ('top-level', 'all') and report.top_level_blame():
            lines.extend(["Top Level Packages with Multi Version Dependencies:", ""])
            for blame in report.top_level_blame():
                lines.extend(OutputFormatter._format_package_blame(blame, entries, blame_detail))
            lines.append("")

        if blame_mode == 'all' and report.dependency_blame():
            lines.extend(["Dependencies with Multi Version Dependencies:", ""])
            for blame in report.dependency_blame():
                lines.extend(OutputFormatter._format_package_blame(blame, entries, blame_detail))
            lines.append("")

        lines.extend(["Duplicate Package(s):", ""])
        for group_report in report.groups.values():
            lines.extend(OutputFormatter._format_group(group_report, show_dependents))

        return '\n'.join(lines) + '\n'

    @staticmethod
    def _blame_entries_by_package(report: DuplicateReport) -> Dict[Tuple[PackageId, str], BlameEntry]:
        return {
            (entry.package, entry.name): entry
            for group_report in report.groups.values()
            for entry in group_report.blame
        }

    @staticmethod
    def _format_package_blame(
        blame: PackageBlame,
        entries: Dict[Tuple[PackageId, str], BlameEntry],
        blame_detail: bool
    ) -> List[str]:
        """Format one blamed package line with optional per-version detail."""
        lines = [f"{blame.package} (direct: {len(blame.direct)}, indirect: {len(blame.indirect)})"]

        if blame_detail and blame.has_direct_blame:
            lines.append("  Direct:")
            for name in blame.direct:
                entry = entries[(blame.package, name)]
                for version, sources in entry.sources:
                    lines.append(f"  --> {', '.join(str(pid) for pid in sources)}")
                    lines.append(f"      {name} {version}")

        if blame_detail and blame.has_indirect_blame:
            lines.append("  Indirect:")
            for name in blame.indirect:
                entry = entries[(blame.package, name)]
                lines.append(f"      {name} (via {entry.via})")

        return lines

    @staticmethod
    def _format_group(group_report: GroupReport, show_dependents: bool) -> List[str]:
        """Format one multi-version package with its lineage tree per version."""
        lines = [f"{group_report.name}:"]
        lineage = group_report.lineage

        for version in group_report.versions:
            if not show_dependents or lineage is None:
                lines.append(f"    {version}")
                continue

            lines.append(f"    {version}:")
            # direct dependent -> top-level dependency -> top-level packages
            tree: Dict[PackageId, Dict[Optional[PackageId], List[PackageId]]] = {}
            for path in lineage.versions.get(version, []):
                by_tl_dep = tree.setdefault(path.direct_dependent, {})
                top_levels = by_tl_dep.setdefault(path.top_level_dependency, [])
                if path.top_level_package is not None and path.top_level_package not in top_levels:
                    top_levels.append(path.top_level_package)

            for direct, by_tl_dep in tree.items():
                lines.append(f"      {direct}")
                for tl_dep, top_levels in by_tl_dep.items():
                    indent = "        "
                    if tl_dep is not None and tl_dep != direct:
                        lines.append(f"{indent}{tl_dep}")
                        indent += "  "
                    for top_level in top_levels:
                        if top_level != direct:
                            lines.append(f"{indent}{top_level}")

        return lines

    @staticmethod
    def format_as_json(report: DuplicateReport, system: str = 'cargo') -> str:
        """Format the report as JSON."""
        def pkg(pid: Optional[PackageId]) -> Optional[Dict[str, str]]:
            if pid is None:
                return None
            return {'name': pid.name, 'version': pid.version, 'purl': OutputFormatter._build_purl(pid, system)}

        def path_to_dict(path: LineagePath) -> Dict[str, Any]:
            return {
                'directDependent': pkg(path.direct_dependent),
                'topLevelDependency': pkg(path.top_level_dependency),
                'topLevelPackage': pkg(path.top_level_package),
                'topLevelVersions': list(path.top_level_versions)
            }

        duplicates = []
        for group_report in report.groups.values():
            entry: Dict[str, Any] = {
                'name': group_report.name,
                'versions': group_report.versions,
                'purls': [OutputFormatter._build_purl(pid, system) for pid in group_report.group.ids]
            }
            if report.options.include_blame:
                entry['blame'] = [
                    {
                        'package': pkg(blame.package),
                        'kind': blame.kind.value,
                        'versions': list(blame.versions),
                        'via': pkg(blame.via),
                        'sources': {version: [pkg(pid) for pid in pids] for version, pids in blame.sources},
                        'topLevel': blame.top_level
                    }
                    for blame in group_report.blame
                ]
            if report.options.include_lineage and group_report.lineage is not None:
                entry['lineage'] = {
                    version: [path_to_dict(path) for path in paths]
                    for version, paths in group_report.lineage.versions.items()
                }
            duplicates.append(entry)

        output: Dict[str, Any] = {'duplicates': duplicates}
        if report.options.include_blame:
            def blame_to_dict(blame: PackageBlame) -> Dict[str, Any]:
                return {'package': pkg(blame.package), 'direct': blame.direct, 'indirect': blame.indirect}

            output['blameSummary'] = {
                'topLevel': [blame_to_dict(b) for b in report.top_level_blame()],
                'dependencies': [blame_to_dict(b) for b in report.dependency_blame()],
                'counts': report.blame_counts()
            }

        return json.dumps(output, indent=2) + '\n'

    @staticmethod
    def format_as_sbom(
        graph: PackageGraph,
        report: Optional[DuplicateReport] = None,
        system: str = 'cargo',
        command_line: Optional[str] = None
    ) -> str:
        """Generate a CycloneDX SBOM in JSON format, tagging duplicated and blamed packages."""
        from . import __version__

        bom = Bom()
        bom.serial_number = uuid4()

        tool_purl_str = f"pkg:pypi/depcheck@{__version__}"
        tool_component = Component(
            name="depcheck",
            version=__version__,
            type=ComponentType.APPLICATION,
            purl=PackageURL.from_string(tool_purl_str),
            bom_ref=tool_purl_str
        )
        bom.metadata.tools.components.add(tool_component)
        bom.metadata.timestamp = datetime.now(timezone.utc).replace(microsecond=0)

        tags_by_package = OutputFormatter._sbom_tags(report) if report is not None else {}

        for pid in sorted(graph):
            component = OutputFormatter._package_to_component(
                pid, graph[pid].is_top_level, system, tags_by_package.get(pid)
            )
            bom.components.add(component)

        outputter = JsonV1Dot6(bom)
        sbom = json.loads(outputter.output_as_string())

        # Dependencies are added from the package graph directly
        dependencies = []
        for pid in graph:
            depends_on = sorted(OutputFormatter._build_purl(dep, system) for dep in graph[pid].dependencies)
            dependencies.append({
                'ref': OutputFormatter._build_purl(pid, system),
                'dependsOn': depends_on
            })
        dependencies.sort(key=lambda d: d['ref'])
        sbom['dependencies'] = dependencies

        components = sbom.get('components', [])
        components.sort(key=lambda c: c.get('purl', ''))

        metadata = sbom.get('metadata', {})
        if command_line:
            metadata.setdefault('properties', []).append({
                'name': 'commandLine',
                'value': command_line
            })

        # UTC with Z suffix
        if 'timestamp' in metadata:
            match = re.match(r'(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})', metadata['timestamp'])
            if match:
                metadata['timestamp'] = match.group(1) + 'Z'

        ordered_sbom = {
            'bomFormat': sbom.get('bomFormat'),
            'specVersion': sbom.get('specVersion'),
            'serialNumber': sbom.get('serialNumber'),
            'version': sbom.get('version', 1),
            'metadata': metadata,
            'components': components,
            'dependencies': dependencies
        }
        return json.dumps(ordered_sbom, indent=2) + '\n'

    @staticmethod
    def _sbom_tags(report: DuplicateReport) -> Dict[PackageId, List[str]]:
        """Collect SBOM tags: duplicated versions and blamed packages."""
        tags: Dict[PackageId, List[str]] = {}
        for group_report in report.groups.values():
            for pid in group_report.group.ids:
                tags.setdefault(pid, []).append("multi-version")
        for blame in report.package_blame:
            if blame.has_direct_blame:
                tags.setdefault(blame.package, []).append("blame:direct")
            if blame.has_indirect_blame:
                tags.setdefault(blame.package, []).append("blame:indirect")
        return tags

    @staticmethod
    def _package_to_component(
        pid: PackageId,
        is_top_level: bool,
        system: str,
        tags: Optional[List[str]] = None
    ) -> Component:
        """Convert a package to a CycloneDX Component."""
        purl_str = OutputFormatter._build_purl(pid, system)
        return Component(
            name=pid.name,
            version=pid.version,
            type=ComponentType.APPLICATION if is_top_level else ComponentType.LIBRARY,
            purl=PackageURL.from_string(purl_str),
            bom_ref=purl_str,
            tags=tags if tags else None
        )

    @staticmethod
    def _build_purl(pid: PackageId, system: str = 'cargo') -> str:
        """Build a Package URL (purl) string for a package."""
        return PackageURL(type=system.lower(), name=pid.name, version=pid.version).to_string()

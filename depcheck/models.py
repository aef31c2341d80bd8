"""Core data models for depcheck."""

import enum
from dataclasses import dataclass, field
from functools import total_ordering
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple

from .version_parser import VersionParser


@total_ordering
@dataclass(frozen=True)
class PackageId:
    """Identity of one package version in a lock file."""

    name: str
    version: str

    def sort_key(self) -> tuple:
        return (self.name, VersionParser.sort_key(self.version))

    def __lt__(self, other) -> bool:
        if not isinstance(other, PackageId):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


@dataclass
class PackageRecord:
    """A package entry as read from a lock file, before graph construction."""

    name: str
    version: str
    source: Optional[str] = None  # Upstream source (registry, git); None for local packages
    dependencies: List[Tuple[str, str]] = field(default_factory=list)  # (name, version) pairs
    checksum: Optional[str] = None

    @property
    def id(self) -> PackageId:
        return PackageId(self.name, self.version)

    @property
    def is_top_level(self) -> bool:
        """True if the package lives in the local source tree."""
        return self.source is None


@dataclass(frozen=True)
class PackageNode:
    """A package in the graph with its outgoing and incoming edges."""

    id: PackageId
    is_top_level: bool = False
    dependencies: FrozenSet[PackageId] = frozenset()
    dependents: FrozenSet[PackageId] = frozenset()
    source: Optional[str] = None

    @property
    def name(self) -> str:
        return self.id.name

    @property
    def version(self) -> str:
        return self.id.version


class PackageGraph:
    """
    Read-only package graph keyed by PackageId.

    Edges are stored as PackageId sets on each node. Use PackageGraphBuilder to
    create one; dependents are always the exact inverse of dependencies.
    """

    def __init__(self, nodes: Dict[PackageId, PackageNode]):
        self._nodes: Mapping[PackageId, PackageNode] = MappingProxyType(dict(nodes))

    def __getitem__(self, pid: PackageId) -> PackageNode:
        return self._nodes[pid]

    def __contains__(self, pid) -> bool:
        return pid in self._nodes

    def __iter__(self) -> Iterator[PackageId]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, pid: PackageId) -> Optional[PackageNode]:
        return self._nodes.get(pid)

    @property
    def nodes(self) -> Mapping[PackageId, PackageNode]:
        return self._nodes

    def dependencies_of(self, pid: PackageId) -> List[PackageId]:
        """Direct dependencies of a package, sorted."""
        return sorted(self._nodes[pid].dependencies)

    def dependents_of(self, pid: PackageId) -> List[PackageId]:
        """Packages that depend directly on this one, sorted."""
        return sorted(self._nodes[pid].dependents)

    def top_level_packages(self) -> List[PackageId]:
        return sorted(pid for pid, node in self._nodes.items() if node.is_top_level)


@dataclass(frozen=True)
class MultiVersionGroup:
    """A package name present in the graph at two or more versions."""

    name: str
    ids: Tuple[PackageId, ...]

    def __post_init__(self):
        if len(self.ids) < 2:
            raise ValueError(f"A multi-version group needs at least two versions, got {len(self.ids)} for '{self.name}'")
        if any(pid.name != self.name for pid in self.ids):
            raise ValueError(f"All packages in group '{self.name}' must share its name")

    @property
    def versions(self) -> List[str]:
        return [pid.version for pid in self.ids]


# Ancestor -> versions of the group's package reachable beneath it
ParentVersionMap = Dict[PackageId, FrozenSet[str]]


class BlameKind(enum.Enum):
    DIRECT = "direct"
    INDIRECT = "indirect"


@dataclass(frozen=True)
class BlameEntry:
    """Responsibility of one ancestor package for one multi-version group."""

    package: PackageId
    name: str  # Multi-version package name
    kind: BlameKind
    versions: Tuple[str, ...]
    via: Optional[PackageId] = None  # INDIRECT only: dependency carrying the same version set
    sources: Tuple[Tuple[str, Tuple[PackageId, ...]], ...] = ()  # DIRECT only: version -> dependencies
    top_level: bool = False

    @property
    def is_direct(self) -> bool:
        return self.kind is BlameKind.DIRECT

    def sources_by_version(self) -> Dict[str, Tuple[PackageId, ...]]:
        return dict(self.sources)


@dataclass(frozen=True)
class LineagePath:
    """One traced route from a duplicated version up to the source tree."""

    direct_dependent: PackageId
    top_level_dependency: Optional[PackageId] = None
    top_level_package: Optional[PackageId] = None
    top_level_versions: Tuple[str, ...] = field(default=(), compare=False)


@dataclass
class LineageRecord:
    """Lineage of every version in a multi-version group."""

    name: str
    versions: Dict[str, List[LineagePath]] = field(default_factory=dict)

    def paths(self) -> Iterator[LineagePath]:
        for version_paths in self.versions.values():
            yield from version_paths

    def _unique(self, attr: str) -> List[PackageId]:
        seen = set()
        result = []
        for path in self.paths():
            pid = getattr(path, attr)
            if pid is not None and pid not in seen:
                seen.add(pid)
                result.append(pid)
        return result

    @property
    def direct_dependents(self) -> List[PackageId]:
        return self._unique('direct_dependent')

    @property
    def top_level_dependencies(self) -> List[PackageId]:
        return self._unique('top_level_dependency')

    @property
    def top_level_packages(self) -> List[PackageId]:
        return self._unique('top_level_package')

    @property
    def direct_dependent(self) -> Optional[PackageId]:
        found = self.direct_dependents
        return found[0] if found else None

    @property
    def top_level_dependency(self) -> Optional[PackageId]:
        found = self.top_level_dependencies
        return found[0] if found else None

    @property
    def top_level_package(self) -> Optional[PackageId]:
        found = self.top_level_packages
        return found[0] if found else None

    def is_empty(self) -> bool:
        return not any(self.versions.values())


@dataclass
class AnalysisOptions:
    """Which parts of the analysis to run."""

    include_blame: bool = False
    include_lineage: bool = False
    max_workers: int = 1  # >1 analyzes groups on a thread pool

    def __post_init__(self):
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    @property
    def needs_parent_map(self) -> bool:
        return self.include_blame or self.include_lineage


@dataclass
class GroupReport:
    """Analysis results for one multi-version group."""

    group: MultiVersionGroup
    blame: List[BlameEntry] = field(default_factory=list)
    lineage: Optional[LineageRecord] = None

    @property
    def name(self) -> str:
        return self.group.name

    @property
    def versions(self) -> List[str]:
        return self.group.versions


@dataclass
class PackageBlame:
    """All multi-version groups one package is to blame for."""

    package: PackageId
    top_level: bool = False
    direct: List[str] = field(default_factory=list)
    indirect: List[str] = field(default_factory=list)

    @property
    def has_direct_blame(self) -> bool:
        return bool(self.direct)

    @property
    def has_indirect_blame(self) -> bool:
        return bool(self.indirect)


@dataclass
class DuplicateReport:
    """Multi-version groups keyed by package name, in name order."""

    groups: Dict[str, GroupReport] = field(default_factory=dict)
    options: AnalysisOptions = field(default_factory=AnalysisOptions)
    package_blame: List[PackageBlame] = field(default_factory=list)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.groups)

    def top_level_blame(self) -> List[PackageBlame]:
        return [b for b in self.package_blame if b.top_level]

    def dependency_blame(self) -> List[PackageBlame]:
        return [b for b in self.package_blame if not b.top_level]

    def blame_counts(self) -> Dict[str, int]:
        """Count blamed packages: direct only, indirect only, both, total."""
        counts = {'direct': 0, 'indirect': 0, 'both': 0, 'total': 0}
        for blame in self.package_blame:
            if blame.has_direct_blame and blame.has_indirect_blame:
                counts['both'] += 1
            elif blame.has_direct_blame:
                counts['direct'] += 1
            elif blame.has_indirect_blame:
                counts['indirect'] += 1
            counts['total'] += 1
        return counts

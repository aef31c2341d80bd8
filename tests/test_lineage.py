"""Tests for lineage tracing."""

import pytest

from depcheck.exceptions import CycleDetectedError
from depcheck.graph_builder import build_graph
from depcheck.lineage import trace_lineage
from depcheck.models import LineagePath
from depcheck.multi_version import detect_multi_versions
from depcheck.parent_walker import walk_parents


def _lineage(graph, with_parent_map=True):
    group = detect_multi_versions(graph)[0]
    parent_map = walk_parents(graph, group) if with_parent_map else None
    return trace_lineage(graph, group, parent_map)


class TestTraceLineage:
    """Tests for trace_lineage."""

    def test_scenario_a(self, scenario_a, make_pid):
        """Test lineage when direct dependents sit just below the top level."""
        record = _lineage(scenario_a)
        b, c, top = make_pid('b@0.1.0'), make_pid('c@0.1.0'), make_pid('top@0.1.0')

        assert record.versions == {
            '1.0.0': [LineagePath(b, b, top)],
            '2.0.0': [LineagePath(c, c, top)],
        }
        assert record.direct_dependents == [b, c]
        assert record.top_level_dependencies == [b, c]
        assert record.top_level_packages == [top]
        assert record.top_level_package == top
        assert record.versions['1.0.0'][0].top_level_versions == ('1.0.0', '2.0.0')

    def test_scenario_b(self, scenario_b, make_pid):
        """Test lineage through an intermediate package."""
        record = _lineage(scenario_b)
        mid, top = make_pid('mid@0.1.0'), make_pid('top@0.1.0')

        assert record.versions['1.0.0'] == [LineagePath(make_pid('left@0.1.0'), mid, top)]
        assert record.versions['2.0.0'] == [LineagePath(make_pid('right@0.1.0'), mid, top)]
        assert record.direct_dependent == make_pid('left@0.1.0')
        assert record.top_level_dependency == mid
        assert record.top_level_dependencies == [mid]

    def test_parent_map_computed_when_omitted(self, scenario_b):
        """Test that the parent map is optional."""
        assert _lineage(scenario_b, with_parent_map=False).versions == _lineage(scenario_b).versions

    def test_top_level_version_has_no_lineage(self, make_record, make_pid):
        """Test that a version living in the source tree is not traced."""
        graph = build_graph([
            make_record('app@0.1.0', 'dep@2.0.0', top_level=True),
            make_record('dep@2.0.0', 'user@0.1.0', top_level=True),
            make_record('user@0.1.0', 'dep@1.0.0'),
            make_record('dep@1.0.0'),
        ])

        record = _lineage(graph)

        assert record.versions['2.0.0'] == []
        assert record.versions['1.0.0'] == [
            LineagePath(make_pid('user@0.1.0'), make_pid('user@0.1.0'), make_pid('dep@2.0.0'))
        ]

    def test_no_lineage_at_all(self, make_record):
        """Test a group whose versions are all top-level."""
        graph = build_graph([
            make_record('tool@1.0.0', top_level=True),
            make_record('tool@2.0.0', top_level=True),
        ])

        record = _lineage(graph)

        assert record.is_empty()
        assert record.direct_dependent is None
        assert record.top_level_dependency is None
        assert record.top_level_package is None

    def test_direct_dependent_is_top_level(self, make_record, make_pid):
        """Test a source tree package depending on the duplicated package itself."""
        graph = build_graph([
            make_record('app@0.1.0', 'dep@1.0.0', 'x@0.1.0', top_level=True),
            make_record('x@0.1.0', 'dep@2.0.0'),
            make_record('dep@1.0.0'),
            make_record('dep@2.0.0'),
        ])

        record = _lineage(graph)
        app = make_pid('app@0.1.0')

        assert record.versions['1.0.0'] == [LineagePath(app, None, app)]
        assert record.versions['2.0.0'] == [LineagePath(make_pid('x@0.1.0'), make_pid('x@0.1.0'), app)]

    def test_path_without_top_level(self, make_record, make_pid):
        """Test a path that ends before reaching the source tree."""
        graph = build_graph([
            make_record('orphan@0.1.0', 'dep@1.0.0'),
            make_record('app@0.1.0', 'dep@2.0.0', top_level=True),
            make_record('dep@1.0.0'),
            make_record('dep@2.0.0'),
        ])

        record = _lineage(graph)

        assert record.versions['1.0.0'] == [LineagePath(make_pid('orphan@0.1.0'))]
        assert record.top_level_packages == [make_pid('app@0.1.0')]

    def test_walk_stops_at_first_top_level(self, make_record, make_pid):
        """Test that workspace members above the first top-level package are not recorded."""
        graph = build_graph([
            make_record('outer@0.1.0', 'inner@0.1.0', top_level=True),
            make_record('inner@0.1.0', 'x@0.1.0', 'y@0.1.0', top_level=True),
            make_record('x@0.1.0', 'dep@1.0.0'),
            make_record('y@0.1.0', 'dep@2.0.0'),
            make_record('dep@1.0.0'),
            make_record('dep@2.0.0'),
        ])

        record = _lineage(graph)

        assert record.top_level_packages == [make_pid('inner@0.1.0')]

    def test_diamonds_deduplicated(self, diamond_chain, make_pid):
        """Test that every package appears at most once in each lineage view."""
        record = _lineage(diamond_chain)

        for view in (record.direct_dependents, record.top_level_dependencies, record.top_level_packages):
            assert len(view) == len(set(view))
        assert record.direct_dependents == [make_pid('a0@1.0.0')]
        assert record.top_level_packages == [make_pid('a30@1.0.0')]
        assert record.top_level_dependencies == [make_pid('l29@1.0.0'), make_pid('r29@1.0.0')]
        assert len(record.versions['1.0.0']) == 2

    def test_cycle_is_reported(self, make_record):
        """Test that the defensive cycle check runs before tracing."""
        graph = build_graph([
            make_record('x@1.0.0', 'y@1.0.0', 'dep@1.0.0'),
            make_record('y@1.0.0', 'x@1.0.0'),
            make_record('dep@1.0.0'),
            make_record('dep@2.0.0'),
        ])
        group = detect_multi_versions(graph)[0]

        with pytest.raises(CycleDetectedError):
            trace_lineage(graph, group, {})

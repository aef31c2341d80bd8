"""Tests for output formatters."""

import json

import pytest

from depcheck.analyzer import DuplicateAnalyzer
from depcheck.formatters import NO_DUPLICATES, OutputFormatter
from depcheck.graph_builder import build_graph
from depcheck.models import AnalysisOptions


@pytest.fixture
def full_report(scenario_b):
    return DuplicateAnalyzer(AnalysisOptions(include_blame=True, include_lineage=True)).analyze(scenario_b)


class TestFormatAsText:
    """Tests for text output."""

    def test_no_duplicates(self, make_record):
        graph = build_graph([make_record('app@0.1.0', top_level=True)])

        output = OutputFormatter.format_as_text(DuplicateAnalyzer().analyze(graph))

        assert output == NO_DUPLICATES + '\n'

    def test_versions_only(self, scenario_a):
        output = OutputFormatter.format_as_text(DuplicateAnalyzer().analyze(scenario_a))

        assert output == "Duplicate Package(s):\n\ndep:\n    1.0.0\n    2.0.0\n"

    def test_blame_top_level(self, full_report):
        """Test that top-level mode leaves out blamed dependencies."""
        output = OutputFormatter.format_as_text(full_report, blame_mode='top-level')

        assert "Top Level Packages with Multi Version Dependencies:" in output
        assert "top 0.1.0 (direct: 0, indirect: 1)" in output
        assert "Dependencies with Multi Version Dependencies:" not in output
        assert "mid 0.1.0 (direct" not in output

    def test_blame_all_with_detail(self, full_report):
        """Test blame detail lines for direct and indirect blame."""
        output = OutputFormatter.format_as_text(full_report, blame_mode='all', blame_detail=True)
        lines = output.splitlines()

        assert "Dependencies with Multi Version Dependencies:" in lines
        mid = lines.index("mid 0.1.0 (direct: 1, indirect: 0)")
        assert lines[mid + 1:mid + 6] == [
            "  Direct:",
            "  --> left 0.1.0",
            "      dep 1.0.0",
            "  --> right 0.1.0",
            "      dep 2.0.0",
        ]
        top = lines.index("top 0.1.0 (direct: 0, indirect: 1)")
        assert lines[top + 1:top + 3] == ["  Indirect:", "      dep (via mid 0.1.0)"]

    def test_dependents(self, full_report):
        """Test the lineage tree under each version."""
        output = OutputFormatter.format_as_text(full_report, show_dependents=True)

        assert output.endswith(
            "dep:\n"
            "    1.0.0:\n"
            "      left 0.1.0\n"
            "        mid 0.1.0\n"
            "          top 0.1.0\n"
            "    2.0.0:\n"
            "      right 0.1.0\n"
            "        mid 0.1.0\n"
            "          top 0.1.0\n"
        )

    def test_dependents_when_direct_dependent_is_top_level(self, make_record):
        graph = build_graph([
            make_record('app@0.1.0', 'dep@1.0.0', 'dep@2.0.0', top_level=True),
            make_record('dep@1.0.0'),
            make_record('dep@2.0.0'),
        ])
        report = DuplicateAnalyzer(AnalysisOptions(include_lineage=True)).analyze(graph)

        output = OutputFormatter.format_as_text(report, show_dependents=True)

        assert "    1.0.0:\n      app 0.1.0\n    2.0.0:\n      app 0.1.0\n" in output


class TestFormatAsJson:
    """Tests for JSON output."""

    def test_without_options(self, scenario_a):
        data = json.loads(OutputFormatter.format_as_json(DuplicateAnalyzer().analyze(scenario_a)))

        assert data == {
            'duplicates': [{
                'name': 'dep',
                'versions': ['1.0.0', '2.0.0'],
                'purls': ['pkg:cargo/dep@1.0.0', 'pkg:cargo/dep@2.0.0'],
            }]
        }

    def test_blame_and_lineage(self, full_report):
        data = json.loads(OutputFormatter.format_as_json(full_report))
        dep = data['duplicates'][0]

        kinds = {b['package']['name']: b['kind'] for b in dep['blame']}
        assert kinds == {'mid': 'direct', 'top': 'indirect'}
        top = [b for b in dep['blame'] if b['package']['name'] == 'top'][0]
        assert top['via']['purl'] == 'pkg:cargo/mid@0.1.0'
        mid = [b for b in dep['blame'] if b['package']['name'] == 'mid'][0]
        assert [s['name'] for s in mid['sources']['1.0.0']] == ['left']

        path = dep['lineage']['1.0.0'][0]
        assert path['directDependent']['name'] == 'left'
        assert path['topLevelDependency']['name'] == 'mid'
        assert path['topLevelPackage']['name'] == 'top'
        assert path['topLevelVersions'] == ['1.0.0', '2.0.0']

        summary = data['blameSummary']
        assert [b['package']['name'] for b in summary['topLevel']] == ['top']
        assert [b['package']['name'] for b in summary['dependencies']] == ['mid']
        assert summary['counts'] == {'direct': 1, 'indirect': 1, 'both': 0, 'total': 2}

    def test_system_changes_purl_type(self, scenario_a):
        data = json.loads(OutputFormatter.format_as_json(DuplicateAnalyzer().analyze(scenario_a), system='npm'))

        assert data['duplicates'][0]['purls'][0] == 'pkg:npm/dep@1.0.0'


class TestFormatAsSbom:
    """Tests for CycloneDX SBOM output."""

    def test_structure(self, scenario_b, full_report):
        sbom = json.loads(OutputFormatter.format_as_sbom(scenario_b, full_report, command_line="sbom Cargo.lock"))

        assert sbom['bomFormat'] == 'CycloneDX'
        assert sbom['specVersion'] == '1.6'
        assert sbom['metadata']['timestamp'].endswith('Z')
        assert {'name': 'commandLine', 'value': 'sbom Cargo.lock'} in sbom['metadata']['properties']

        purls = [c['purl'] for c in sbom['components']]
        assert purls == sorted(purls)
        assert len(purls) == 6

    def test_component_types_and_tags(self, scenario_b, full_report):
        sbom = json.loads(OutputFormatter.format_as_sbom(scenario_b, full_report))
        by_name = {c['name']: c for c in sbom['components']}

        assert by_name['top']['type'] == 'application'
        assert by_name['left']['type'] == 'library'
        assert by_name['dep']['tags'] == ['multi-version']
        assert by_name['mid']['tags'] == ['blame:direct']
        assert by_name['top']['tags'] == ['blame:indirect']
        assert 'tags' not in by_name['left']

    def test_dependencies(self, scenario_b):
        sbom = json.loads(OutputFormatter.format_as_sbom(scenario_b))
        deps = {d['ref']: d['dependsOn'] for d in sbom['dependencies']}

        assert deps['pkg:cargo/mid@0.1.0'] == ['pkg:cargo/left@0.1.0', 'pkg:cargo/right@0.1.0']
        assert deps['pkg:cargo/dep@1.0.0'] == []
        assert len(deps) == 6

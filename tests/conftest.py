"""Shared fixtures: small package graphs built from 'name@version' shorthand."""

import pytest

from depcheck.graph_builder import build_graph
from depcheck.models import PackageId, PackageRecord

REGISTRY = "registry+https://github.com/rust-lang/crates.io-index"


def record(ref, *deps, top_level=False):
    """record('b@0.1.0', 'dep@1.0.0') -> PackageRecord for b depending on dep 1.0.0."""
    name, version = ref.split('@')
    return PackageRecord(
        name=name,
        version=version,
        source=None if top_level else REGISTRY,
        dependencies=[tuple(dep.split('@')) for dep in deps]
    )


def pid(ref):
    name, version = ref.split('@')
    return PackageId(name, version)


@pytest.fixture
def make_record():
    return record


@pytest.fixture
def make_pid():
    return pid


@pytest.fixture
def scenario_a():
    """top -> b -> dep 1.0.0, top -> c -> dep 2.0.0"""
    return build_graph([
        record('top@0.1.0', 'b@0.1.0', 'c@0.1.0', top_level=True),
        record('b@0.1.0', 'dep@1.0.0'),
        record('c@0.1.0', 'dep@2.0.0'),
        record('dep@1.0.0'),
        record('dep@2.0.0'),
    ])


@pytest.fixture
def scenario_b():
    """top -> mid -> {left -> dep 1.0.0, right -> dep 2.0.0}"""
    return build_graph([
        record('top@0.1.0', 'mid@0.1.0', top_level=True),
        record('mid@0.1.0', 'left@0.1.0', 'right@0.1.0'),
        record('left@0.1.0', 'dep@1.0.0'),
        record('right@0.1.0', 'dep@2.0.0'),
        record('dep@1.0.0'),
        record('dep@2.0.0'),
    ])


@pytest.fixture
def diamond_chain():
    """Thirty stacked diamonds above two versions of dep; naive path enumeration is 2**30."""
    layers = 30
    records = [
        record('a0@1.0.0', 'dep@1.0.0', 'dep@2.0.0'),
        record('dep@1.0.0'),
        record('dep@2.0.0'),
    ]
    for i in range(layers):
        records.append(record(f'l{i}@1.0.0', f'a{i}@1.0.0'))
        records.append(record(f'r{i}@1.0.0', f'a{i}@1.0.0'))
        records.append(record(f'a{i + 1}@1.0.0', f'l{i}@1.0.0', f'r{i}@1.0.0', top_level=(i == layers - 1)))
    return build_graph(records)

import numpy as np
import pytest

import spectral_tad.hierarchy as hierarchy_mod
from spectral_tad.config import BoundaryPolicy
from spectral_tad.contact_map import ContactMatrix
from spectral_tad.errors import ResolutionTooCoarse
from spectral_tad.hierarchy import build_hierarchy
from spectral_tad.synth import make_block_matrix, make_tad_contact_matrix


def _matrix(M, resolution):
    return ContactMatrix(
        values=np.asarray(M, dtype=np.float64),
        labels=np.arange(M.shape[0], dtype=np.int64) * resolution,
        resolution=resolution,
    )


@pytest.fixture
def nested():
    return _matrix(make_tad_contact_matrix([30, 40, 36, 44, 30], n_sub=2, seed=7), 50_000)


@pytest.mark.parametrize("policy", ["zscore", "silhouette"])
def test_levels_are_nested_and_well_formed(nested, policy):
    h = build_hierarchy(nested, "chr3", levels=3, min_size=5, policy=policy)

    assert sorted(h.levels) == [1, 2, 3]
    for level, records in h.levels.items():
        assert all(r.level == level for r in records)
        starts = [r.start for r in records]
        assert starts == sorted(starts)
        for a, b in zip(records, records[1:]):
            assert a.end <= b.start
        assert all((r.end - r.start) / 50_000 >= 5 for r in records)

    for level in (2, 3):
        parents = h.levels[level - 1]
        for r in h.levels[level]:
            assert any(p.contains(r) for p in parents)


def test_hierarchy_is_deterministic(nested):
    first = build_hierarchy(nested, "chr3", levels=2, min_size=5, policy="silhouette")
    second = build_hierarchy(nested, "chr3", levels=2, min_size=5, policy="silhouette")
    assert first.levels == second.levels


def test_small_domains_pass_through():
    m = _matrix(make_block_matrix(3, 10), 25_000)

    h = build_hierarchy(m, "chr1", levels=3, min_size=5, policy="zscore", eigenvalues=3, window_size=30)

    spans = [(r.start, r.end) for r in h[1]]
    assert len(spans) == 3
    # 10-bin domains cannot hold two 5-bin sub-domains.
    assert [(r.start, r.end) for r in h[2]] == spans
    assert [(r.start, r.end) for r in h[3]] == spans
    assert [r.level for r in h[3]] == [3, 3, 3]


def test_sub_levels_use_zscore(nested, monkeypatch):
    seen = []
    real = hierarchy_mod.find_domains

    def spy(*args, **kwargs):
        seen.append(BoundaryPolicy(kwargs["policy"]).value)
        return real(*args, **kwargs)

    monkeypatch.setattr(hierarchy_mod, "find_domains", spy)
    build_hierarchy(nested, "chr3", levels=2, min_size=5, policy="silhouette")

    assert seen[0] == "silhouette"
    assert all(p == "zscore" for p in seen[1:])


def test_coarse_resolution_rejected_before_windows(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("window processing should not start")

    monkeypatch.setattr(hierarchy_mod, "find_domains", fail)
    m = _matrix(np.ones((20, 20)), 250_000)
    with pytest.raises(ResolutionTooCoarse):
        build_hierarchy(m, "chr1")


def test_invalid_parameters():
    m = _matrix(make_block_matrix(3, 10), 25_000)
    with pytest.raises(ValueError):
        build_hierarchy(m, "chr1", levels=0)
    with pytest.raises(ValueError):
        build_hierarchy(m, "chr1", eigenvalues=1)
    with pytest.raises(ValueError):
        build_hierarchy(m, "chr1", gap_threshold=1.5)

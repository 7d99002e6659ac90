import numpy as np
import pytest

from spectral_tad.contact_map import ContactMatrix
from spectral_tad.synth import make_block_matrix, make_tad_contact_matrix
from spectral_tad.windows import find_domains


def _matrix(M, resolution):
    return ContactMatrix(
        values=np.asarray(M, dtype=np.float64),
        labels=np.arange(M.shape[0], dtype=np.int64) * resolution,
        resolution=resolution,
    )


def _assert_well_formed(records, resolution, min_size):
    starts = [r.start for r in records]
    assert starts == sorted(starts)
    for a, b in zip(records, records[1:]):
        assert a.end <= b.start
    for r in records:
        assert (r.end - r.start) / resolution >= min_size


@pytest.mark.parametrize("eigenvalues", [2, 3])
def test_three_blocks_zscore(eigenvalues):
    m = _matrix(make_block_matrix(3, 10), 25_000)

    records = find_domains(
        m, "chr1", policy="zscore", min_size=5, eigenvalues=eigenvalues, window_size=30
    )

    assert [(r.start, r.end) for r in records] == [
        (0, 250_000),
        (250_000, 500_000),
        (500_000, 750_000),
    ]
    assert all(r.level == 1 and r.chrom == "chr1" for r in records)
    assert all(r.silhouette_score is None for r in records)


def test_three_blocks_silhouette_with_quality_filter():
    m = _matrix(make_block_matrix(3, 10), 25_000)

    records = find_domains(
        m, "chr1", policy="silhouette", min_size=5, eigenvalues=3, window_size=30, qual_filter=True
    )

    assert [(r.start, r.end) for r in records] == [
        (0, 250_000),
        (250_000, 500_000),
        (500_000, 750_000),
    ]
    assert all(r.silhouette_score > 0.9 for r in records)


def test_uniform_matrix_has_no_domains():
    m = _matrix(np.full((20, 20), 5.0), 25_000)
    assert find_domains(m, "chr1", policy="zscore", min_size=5) == []


def test_too_sparse_matrix_is_skipped():
    M = np.zeros((40, 40))
    M[np.arange(40), np.arange(40)] = 3.0
    m = _matrix(M, 50_000)

    # Every bin has mostly zeros; with a strict gap threshold none survive.
    assert find_domains(m, "chr1", policy="zscore", min_size=5, gap_threshold=0.5) == []


@pytest.mark.parametrize("policy", ["zscore", "silhouette"])
def test_synthetic_domains_are_well_formed(policy):
    M = make_tad_contact_matrix([20, 30, 16, 24, 30, 20], seed=1)
    m = _matrix(M, 50_000)

    records = find_domains(m, "chr2", policy=policy, min_size=5)

    _assert_well_formed(records, 50_000, 5)
    if policy == "silhouette":
        assert len(records) > 0


def test_quality_filter_only_removes():
    M = make_tad_contact_matrix([20, 30, 16, 24, 30, 20], seed=2)
    m = _matrix(M, 50_000)

    plain = find_domains(m, "chr1", policy="silhouette", min_size=5)
    filtered = find_domains(m, "chr1", policy="silhouette", min_size=5, qual_filter=True)

    assert len(filtered) <= len(plain)
    spans = {(r.start, r.end) for r in plain}
    for r in filtered:
        assert (r.start, r.end) in spans
        assert r.silhouette_score > 0.15


def test_gap_bins_are_excluded():
    M = make_tad_contact_matrix([20, 30, 16, 24, 30, 20], seed=3)
    M[40:44, :] = 0
    M[:, 40:44] = 0
    m = _matrix(M, 50_000)

    records = find_domains(m, "chr1", policy="silhouette", min_size=5)

    _assert_well_formed(records, 50_000, 5)
    gap = set(range(40 * 50_000, 44 * 50_000, 50_000))
    for r in records:
        # Removed bins never start or end a domain.
        assert r.start not in gap
        assert r.end - 50_000 not in gap

import numpy as np

from spectral_tad.boundaries import (
    greedy_cutpoints,
    memberships_from_cuts,
    select_by_silhouette,
    silhouette_memberships,
    zscore_boundaries,
    zscore_memberships,
)
from spectral_tad.laplacian import embedding_gaps, spectral_embedding
from spectral_tad.silhouette import contact_dissimilarity
from spectral_tad.synth import make_block_matrix


def _spikes(n, positions, height=1.0):
    gaps = np.zeros(n, dtype=np.float64)
    gaps[0] = np.nan
    gaps[list(positions)] = height
    return gaps


def test_memberships_from_cuts():
    labels = memberships_from_cuts([6, 3], 8)
    assert labels.tolist() == [0, 0, 0, 1, 1, 1, 2, 2]


def test_zscore_boundaries_finds_spikes():
    assert zscore_boundaries(_spikes(30, [10, 20]), min_size=5) == [10, 20]


def test_zscore_boundaries_keeps_first_of_close_pair():
    assert zscore_boundaries(_spikes(30, [10, 12, 20]), min_size=5) == [10, 20]


def test_zscore_boundaries_ignores_window_start():
    assert zscore_boundaries(_spikes(30, [3, 15]), min_size=5) == [15]


def test_zscore_boundaries_ignores_last_gap():
    # The final gap is excluded from the standardisation and the candidates.
    assert zscore_boundaries(_spikes(30, [29]), min_size=5) == []


def test_zscore_flat_signal_has_no_boundaries():
    gaps = _spikes(30, [])
    assert zscore_boundaries(gaps, min_size=5) == []
    assert zscore_memberships(gaps, min_size=5) is None


def test_greedy_cutpoints_respects_min_size():
    gaps = np.array([np.nan, 0.1, 0.9, 0.2, 0.8, 0.3, 0.05])
    assert greedy_cutpoints(gaps, min_size=1) == [2, 4, 6]


def test_select_by_silhouette_first_decrease():
    assert select_by_silhouette([0.1, 0.3, 0.2, 0.4]) == 1
    assert select_by_silhouette([0.5, 0.4]) == 0


def test_select_by_silhouette_falls_back_to_maximum(caplog):
    with caplog.at_level("WARNING"):
        assert select_by_silhouette([0.1, 0.2, 0.3]) == 2
    assert "never decrease" in caplog.text


def test_silhouette_memberships_recovers_blocks():
    A = make_block_matrix(3, 10)
    gaps = embedding_gaps(spectral_embedding(A, 3))

    labels = silhouette_memberships(gaps, contact_dissimilarity(A), min_size=5, max_clusters=6)
    expected = np.repeat([0, 1, 2], 10)
    assert labels.tolist() == expected.tolist()


def test_silhouette_memberships_without_gaps():
    gaps = np.array([np.nan])
    D = contact_dissimilarity(np.ones((1, 1)))
    assert silhouette_memberships(gaps, D, min_size=5, max_clusters=3) is None

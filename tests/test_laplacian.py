import numpy as np

from spectral_tad.laplacian import (
    embedding_gaps,
    normalized_similarity,
    spectral_embedding,
    top_eigenpairs,
)
from spectral_tad.synth import make_block_matrix


def _path_graph(n):
    A = np.zeros((n, n), dtype=np.float64)
    for i in range(n - 1):
        A[i, i + 1] = 1
        A[i + 1, i] = 1
    return A


def test_normalized_similarity_zero_degree_rows_are_zero():
    A = _path_graph(6)
    A[2, :] = 0
    A[:, 2] = 0

    S = normalized_similarity(A)
    assert not np.isnan(S).any()
    assert np.all(S[2] == 0)
    assert np.allclose(S, S.T)


def test_top_eigenpairs_descending():
    S = normalized_similarity(_path_graph(20))
    evals, evecs = top_eigenpairs(S, 3)

    assert evals.shape == (3,)
    assert evecs.shape == (20, 3)
    assert np.all(np.diff(evals) <= 0)
    assert np.isclose(evals[0], 1.0)
    assert np.allclose(evecs.T @ evecs, np.eye(3), atol=1e-8)


def test_spectral_embedding_unit_rows_and_orientation():
    E = spectral_embedding(_path_graph(20), 2)

    assert E.shape == (20, 2)
    assert np.allclose(np.linalg.norm(E, axis=1), 1.0)
    # Every eigenvector is flipped so that its first entry is non-positive.
    assert np.all(E[0] <= 0)


def test_spectral_embedding_separates_blocks():
    E = spectral_embedding(make_block_matrix(3, 10), 3)
    gaps = embedding_gaps(E)

    assert np.isnan(gaps[0])
    assert np.allclose(gaps[[10, 20]], np.sqrt(2.0))
    inside = np.delete(gaps[1:], [9, 19])
    assert np.all(inside < 1e-8)


def test_spectral_embedding_drops_null_space():
    # Constant matrix: only the leading eigenvalue is non-zero.
    E = spectral_embedding(np.full((20, 20), 5.0), 2)

    assert E.shape == (20, 1)
    assert np.allclose(E, -1.0)

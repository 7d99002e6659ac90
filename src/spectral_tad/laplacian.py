from __future__ import annotations

import numpy as np
from scipy.linalg import eigh

# Eigenvalues this small relative to the leading one span the numerical null
# space; their eigenvectors are arbitrary and carry no structure.
NULL_EIGENVALUE_RTOL = 1e-8


def normalized_similarity(A: np.ndarray) -> np.ndarray:
    """Degree-normalised similarity: D^{-1/2} A D^{-1/2}.

    Rows with zero degree produce NaN entries, which are replaced by 0.
    """
    A = np.asarray(A, dtype=np.float64)
    d = np.abs(A).sum(axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        inv_sqrt = 1.0 / np.sqrt(d)
        S = inv_sqrt[:, None] * A * inv_sqrt[None, :]
    S[np.isnan(S)] = 0.0
    return S


def top_eigenpairs(S: np.ndarray, k: int) -> tuple[np.ndarray, np.ndarray]:
    """Largest-k eigenpairs of a symmetric matrix.

    Returns:
        evals: (k,) descending
        evecs: (n, k)
    """

    if k <= 0:
        raise ValueError("k must be positive")

    n = S.shape[0]
    if S.shape[1] != n:
        raise ValueError("S must be square")

    k = min(int(k), n)
    w, v = eigh(S, subset_by_index=[n - k, n - 1])
    # eigh is ascending; stable ordering keeps ties deterministic.
    idx = np.argsort(-w, kind="stable")
    return w[idx], v[:, idx]


def spectral_embedding(A: np.ndarray, k: int) -> np.ndarray:
    """Row-normalised spectral embedding of a contact window.

    Each eigenvector is scaled to norm sqrt(n) and oriented so that its first
    entry is non-positive, then every row is projected onto the unit sphere.
    """

    S = normalized_similarity(A)
    n = S.shape[0]
    evals, evecs = top_eigenpairs(S, k)

    scale = np.max(np.abs(evals)) if evals.size else 0.0
    keep = np.abs(evals) > NULL_EIGENVALUE_RTOL * scale
    if not keep.any():
        keep[0] = True
    evecs = evecs[:, keep].copy()

    norms = np.sqrt((evecs**2).sum(axis=0))
    evecs = evecs / norms * np.sqrt(n)
    first = np.sign(evecs[0, :])
    flip = np.where(first != 0, -first, 1.0)
    evecs = evecs * flip[None, :]

    row_norms = np.sqrt((evecs**2).sum(axis=1))
    row_norms[row_norms == 0] = 1.0
    return evecs / row_norms[:, None]


def embedding_gaps(E: np.ndarray) -> np.ndarray:
    """Euclidean distance between consecutive embedding rows.

    Entry 0 is NaN; entry j is the distance from row j-1 to row j.
    """
    E = np.asarray(E, dtype=np.float64)
    gaps = np.full(E.shape[0], np.nan, dtype=np.float64)
    if E.shape[0] > 1:
        gaps[1:] = np.sqrt(((E[1:] - E[:-1]) ** 2).sum(axis=1))
    return gaps

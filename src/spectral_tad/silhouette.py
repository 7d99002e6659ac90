from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.metrics import silhouette_samples


def contact_dissimilarity(A: np.ndarray) -> np.ndarray:
    """Pairwise dissimilarity 1 / (1 + contacts), zero on the diagonal."""
    D = 1.0 / (1.0 + np.asarray(A, dtype=np.float64))
    np.fill_diagonal(D, 0.0)
    return D


def _valid_labels(labels: np.ndarray) -> bool:
    n_labels = np.unique(labels).shape[0]
    return 1 < n_labels < labels.shape[0]


def mean_silhouette(labels, D: np.ndarray) -> float | None:
    """Average silhouette width over all points, or None when undefined
    (fewer than two clusters, or every point its own cluster)."""
    labels = np.asarray(labels)
    if not _valid_labels(labels):
        return None
    return float(np.mean(silhouette_samples(D, labels, metric="precomputed")))


def cluster_silhouettes(labels, D: np.ndarray) -> pd.Series | None:
    """Average silhouette width per cluster, indexed by sorted cluster label."""
    labels = np.asarray(labels)
    if not _valid_labels(labels):
        return None
    widths = silhouette_samples(D, labels, metric="precomputed")
    return pd.Series(widths).groupby(labels).mean()

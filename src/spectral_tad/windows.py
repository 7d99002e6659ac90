"""Sliding-window spectral clustering along the diagonal of a contact matrix."""

from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd

from .boundaries import silhouette_memberships, zscore_memberships
from .config import BoundaryPolicy, default_window_size
from .contact_map import ContactMatrix
from .domains import DomainRecord
from .laplacian import embedding_gaps, spectral_embedding
from .silhouette import cluster_silhouettes, contact_dissimilarity

logger = logging.getLogger(__name__)

QUALITY_MIN_SILHOUETTE = 0.15


def _retained_bins(window: np.ndarray, gap_threshold: float) -> np.ndarray:
    """Window positions whose zero count is below round(width * gap_threshold)."""
    zero_limit = round(window.shape[0] * float(gap_threshold))
    return np.flatnonzero((window == 0).sum(axis=0) < zero_limit)


def _window_memberships(
    sub: np.ndarray,
    *,
    policy: BoundaryPolicy,
    min_size: int,
    eigenvalues: int,
    width: int,
) -> np.ndarray | None:
    E = spectral_embedding(sub, eigenvalues)
    gaps = embedding_gaps(E)
    if policy is BoundaryPolicy.ZSCORE:
        return zscore_memberships(gaps, min_size)
    max_clusters = int(math.ceil(width / float(min_size)))
    return silhouette_memberships(gaps, contact_dissimilarity(sub), min_size, max_clusters)


def _group_edges(labels: np.ndarray, memberships: np.ndarray) -> np.ndarray:
    """Replace each membership by the rightmost coordinate of its group."""
    return pd.Series(labels).groupby(memberships).transform("max").to_numpy(dtype=np.int64)


def _slide(
    matrix: ContactMatrix,
    *,
    policy: BoundaryPolicy,
    min_size: int,
    eigenvalues: int,
    window_size: int,
    gap_threshold: float,
) -> tuple[np.ndarray, np.ndarray]:
    """Run the window loop; returns (bin coordinate, group edge) pairs."""

    M = matrix.values
    n = matrix.n_bins
    ids: list[np.ndarray] = []
    groups: list[np.ndarray] = []

    lo = 0
    hi = min(window_size, n) - 1
    if hi + 1 + window_size > n:
        hi = n - 1

    while True:
        window = M[lo : hi + 1, lo : hi + 1]
        keep = _retained_bins(window, gap_threshold)

        if keep.shape[0] < 2 * min_size:
            logger.debug("Skipping sparse window [%d, %d]: %d bins retained", lo, hi, keep.shape[0])
            if hi == n - 1:
                break
            lo = hi
            hi = lo + window_size
            if hi + 1 + window_size > n:
                hi = n - 1
            continue

        sub = window[np.ix_(keep, keep)]
        member = _window_memberships(
            sub,
            policy=policy,
            min_size=min_size,
            eigenvalues=eigenvalues,
            width=hi - lo + 1,
        )
        bins = lo + keep
        coords = matrix.labels[bins]
        edges = None if member is None else _group_edges(coords, member)
        logger.debug(
            "Window [%d, %d]: %d groups",
            lo,
            hi,
            0 if member is None else int(member.max()) + 1,
        )

        if hi == n - 1:
            if edges is not None:
                ids.append(coords)
                groups.append(edges)
            break

        if edges is not None:
            # The last group is re-examined by the next window.
            last = member == member[-1]
            ids.append(coords[~last])
            groups.append(edges[~last])
            lo = int(bins[last][0])
            hi = lo + window_size
        else:
            lo = max(lo, hi - window_size + 1)
            hi = lo + 2 * window_size

        if hi + 1 + window_size > n:
            hi = n - 1

    if not ids:
        return np.empty(0, dtype=np.int64), np.empty(0, dtype=np.int64)
    return np.concatenate(ids), np.concatenate(groups)


def find_domains(
    matrix: ContactMatrix,
    chrom: str,
    *,
    policy: BoundaryPolicy | str = BoundaryPolicy.SILHOUETTE,
    min_size: int = 5,
    eigenvalues: int = 2,
    window_size: int | None = None,
    gap_threshold: float = 1.0,
    qual_filter: bool = False,
) -> list[DomainRecord]:
    """Call level-1 domains on a contact matrix.

    Args:
        matrix: canonical contact matrix (or a slice of one)
        chrom: chromosome label stamped on the records
        policy: "zscore" (significant embedding gaps) or "silhouette"
            (number of groups chosen by silhouette width)
        min_size: minimum domain size in bins
        eigenvalues: number of eigenvectors in the embedding
        window_size: window width in bins; defaults to ceil(2Mb / resolution)
        gap_threshold: fraction of zeros tolerated before a bin is dropped
        qual_filter: keep only domains with silhouette > 0.15
            (silhouette policy only)

    Returns:
        records sorted by start, each at least `min_size` bins wide
    """

    policy = BoundaryPolicy(policy)
    resolution = int(matrix.resolution)
    if window_size is None:
        window_size = default_window_size(resolution)
    window_size = int(math.ceil(window_size))
    min_size = int(min_size)

    if matrix.n_bins == 0:
        return []

    ids, groups = _slide(
        matrix,
        policy=policy,
        min_size=min_size,
        eigenvalues=int(eigenvalues),
        window_size=window_size,
        gap_threshold=float(gap_threshold),
    )
    if ids.shape[0] == 0:
        return []

    pairs = pd.DataFrame({"ID": ids, "Group": groups})
    bed = pairs.groupby("Group")["ID"].agg(start="min", end="max")
    bed["end"] = bed["end"] + resolution
    bed["silhouette_score"] = np.nan

    keep = (bed["end"] - bed["start"]) / resolution >= min_size
    if qual_filter and policy is BoundaryPolicy.SILHOUETTE:
        idx = matrix.index_of(pairs["ID"].to_numpy())
        D = contact_dissimilarity(matrix.values[np.ix_(idx, idx)])
        scores = cluster_silhouettes(pairs["Group"].to_numpy(), D)
        if scores is None:
            logger.warning("Quality filter needs at least two domains on %s; dropping all", chrom)
            return []
        bed["silhouette_score"] = scores
        keep &= bed["silhouette_score"] > QUALITY_MIN_SILHOUETTE
    elif qual_filter:
        logger.debug("Quality filter only applies to the silhouette policy; ignored")

    bed = bed[keep].sort_values("start")
    return [
        DomainRecord(
            chrom=str(chrom),
            start=int(row.start),
            end=int(row.end),
            level=1,
            silhouette_score=None if np.isnan(row.silhouette_score) else float(row.silhouette_score),
        )
        for row in bed.itertuples(index=False)
    ]

"""Boundary selection inside one window.

Both policies work on the gap signal of a window's spectral embedding and
return group memberships (0..g-1, contiguous) for the retained bins of the
window, or None when the window yields no boundaries.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from .silhouette import mean_silhouette

logger = logging.getLogger(__name__)

# Gap signals whose spread is below this are numerically flat.
FLAT_GAP_SD = 1e-8
Z_THRESHOLD = 2.0


def memberships_from_cuts(cuts, n: int) -> np.ndarray:
    """Label rows 0..n-1 by segment; each cut index starts a new segment."""
    cuts = np.sort(np.asarray(cuts, dtype=np.int64))
    return np.searchsorted(cuts, np.arange(n), side="right").astype(np.int64)


def zscore_boundaries(gaps: np.ndarray, min_size: int) -> list[int]:
    """Positions whose standardised gap exceeds 2.

    The last gap is left out of the standardisation. Candidates closer than
    `min_size` to the window start or to the previously kept candidate are
    dropped.
    """

    g = np.asarray(gaps, dtype=np.float64)[:-1]
    finite = g[~np.isnan(g)]
    if finite.shape[0] < 2:
        return []
    sd = float(np.std(finite, ddof=1))
    if not math.isfinite(sd) or sd <= FLAT_GAP_SD:
        return []

    with np.errstate(invalid="ignore"):
        z = (g - float(np.mean(finite))) / sd
        candidates = np.flatnonzero(z > Z_THRESHOLD)

    kept: list[int] = []
    for pos in candidates:
        pos = int(pos)
        if pos < min_size:
            continue
        if kept and pos - kept[-1] < min_size:
            continue
        kept.append(pos)
    return kept


def zscore_memberships(gaps: np.ndarray, min_size: int) -> np.ndarray | None:
    bounds = zscore_boundaries(gaps, min_size)
    if not bounds:
        return None
    return memberships_from_cuts(bounds, np.asarray(gaps).shape[0])


def greedy_cutpoints(gaps: np.ndarray, min_size: int) -> list[int]:
    """Gap positions in descending gap order, skipping any within `min_size`
    of one already accepted."""
    g = np.asarray(gaps, dtype=np.float64)
    order = np.argsort(-g[1:], kind="stable") + 1
    order = [int(p) for p in order if not np.isnan(g[p])]

    accepted: list[int] = []
    for pos in order:
        if any(abs(pos - a) <= min_size for a in accepted):
            continue
        accepted.append(pos)
    return accepted


def select_by_silhouette(scores: list[float]) -> int:
    """Index of the first score followed by a lower one.

    Falls back to the highest score when the sequence never decreases.
    """
    drops = np.flatnonzero(np.diff(np.asarray(scores, dtype=np.float64)) < 0)
    if drops.size:
        return int(drops[0])
    best = int(np.argmax(scores))
    logger.warning(
        "Silhouette scores never decrease over %d candidates; using the maximum (k=%d)",
        len(scores),
        best + 1,
    )
    return best


def silhouette_memberships(
    gaps: np.ndarray,
    D: np.ndarray,
    min_size: int,
    max_clusters: int,
) -> np.ndarray | None:
    """Pick the number of cutpoints by silhouette width.

    Candidate k uses the first k greedy cutpoints (k + 1 groups), for
    k = 1..max_clusters, stopping once cutpoints run out.
    """

    n = np.asarray(gaps).shape[0]
    cuts = greedy_cutpoints(gaps, min_size)

    scores: list[float] = []
    candidates: list[np.ndarray] = []
    for k in range(1, int(max_clusters) + 1):
        if k > len(cuts):
            break
        labels = memberships_from_cuts(cuts[:k], n)
        score = mean_silhouette(labels, D)
        if score is None:
            break
        scores.append(score)
        candidates.append(labels)

    if not scores:
        return None
    return candidates[select_by_silhouette(scores)]

from __future__ import annotations

import logging
from dataclasses import replace

import numpy as np

from .config import MAX_RESOLUTION, BoundaryPolicy, TADParams
from .contact_map import ContactMatrix
from .domains import DomainRecord, Hierarchy
from .errors import ResolutionTooCoarse
from .windows import find_domains

logger = logging.getLogger(__name__)


def _split_level(
    matrix: ContactMatrix,
    chrom: str,
    parents: list[DomainRecord],
    params: TADParams,
) -> list[DomainRecord]:
    """Sub-domains of every parent, with unsplittable parents passed through."""

    min_size = int(params.min_size)
    passed: list[DomainRecord] = []
    found: list[DomainRecord] = []

    for tad in parents:
        i0, i1 = matrix.index_of([tad.start, tad.end - matrix.resolution])
        if (i1 - i0) < 2 * min_size:
            passed.append(tad)
            continue

        sub = matrix.slice(int(i0), int(i1) + 1)
        occupied = int(np.count_nonzero(sub.values.sum(axis=1) != 0))
        if occupied < 2 * min_size:
            passed.append(tad)
            continue

        found.extend(
            find_domains(
                sub,
                chrom,
                policy=BoundaryPolicy.ZSCORE,
                min_size=min_size,
                eigenvalues=params.eigenvalues,
                window_size=params.window_size,
                gap_threshold=params.gap_threshold,
            )
        )

    logger.debug("%d sub-domains found, %d domains passed through", len(found), len(passed))
    return found + passed


def build_hierarchy(
    matrix: ContactMatrix,
    chrom: str,
    *,
    levels: int = 1,
    min_size: int = 5,
    policy: BoundaryPolicy | str = BoundaryPolicy.SILHOUETTE,
    eigenvalues: int = 2,
    window_size: int | None = None,
    gap_threshold: float = 1.0,
    qual_filter: bool = False,
) -> Hierarchy:
    """Call nested domains, one list per level.

    Level 1 uses `policy`; deeper levels re-run the z-score policy inside each
    domain of the level above. Domains that are too small or too sparse to
    split are carried into the next level unchanged. Exactly `levels` levels
    are produced. Deeper levels reuse the caller's `eigenvalues`, `window_size`
    and `gap_threshold` rather than resetting them to their defaults.
    """

    params = TADParams(
        levels=levels,
        min_size=min_size,
        eigenvalues=eigenvalues,
        window_size=window_size,
        gap_threshold=gap_threshold,
        policy=policy,
        qual_filter=qual_filter,
    ).validate()
    if matrix.resolution > MAX_RESOLUTION:
        raise ResolutionTooCoarse("Resolution must be less than (or equal to) 200kb")

    top = find_domains(
        matrix,
        chrom,
        policy=params.policy,
        min_size=params.min_size,
        eigenvalues=params.eigenvalues,
        window_size=params.window_size,
        gap_threshold=params.gap_threshold,
        qual_filter=params.qual_filter,
    )
    hierarchy = Hierarchy(chrom=str(chrom), resolution=int(matrix.resolution), levels={1: top})
    logger.info("%s level 1: %d domains", chrom, len(top))

    for level in range(2, int(params.levels) + 1):
        records = _split_level(matrix, chrom, hierarchy.levels[level - 1], params)
        records.sort(key=lambda r: r.start)
        hierarchy.levels[level] = [replace(r, level=level) for r in records]
        logger.info("%s level %d: %d domains", chrom, level, len(records))

    return hierarchy

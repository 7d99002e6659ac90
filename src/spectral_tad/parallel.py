from __future__ import annotations

import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Sequence

from .config import TADParams
from .domains import Hierarchy
from .pipeline import spectral_tad

logger = logging.getLogger(__name__)


def _worker(cont_mat, chrom: str, params: TADParams, resolution, out_format: str, out_path) -> tuple[str, Hierarchy]:
    hierarchy = spectral_tad(
        cont_mat,
        chrom,
        resolution=resolution,
        out_format=out_format,
        out_path=out_path,
        **params.as_kwargs(),
    )
    return chrom, hierarchy


def spectral_tad_par(
    matrices: Sequence,
    chroms: Sequence[str],
    *,
    cores: int | None = None,
    params: TADParams | None = None,
    resolution: int | str = "auto",
    out_format: str = "none",
    out_dir: str | Path | None = None,
) -> dict[str, Hierarchy]:
    """Call hierarchies for several chromosomes, one worker per chromosome.

    Results are keyed by chromosome in input order. With `cores <= 1` every
    chromosome runs in this process. Any failing chromosome re-raises.
    """

    if len(matrices) != len(chroms):
        raise ValueError("matrices and chroms must have the same length")
    params = (params or TADParams()).validate()
    chroms = [str(c) for c in chroms]
    if len(set(chroms)) != len(chroms):
        raise ValueError("chromosome labels must be unique")

    fmt = str(out_format).lower()
    out_paths = [None] * len(chroms)
    if fmt != "none":
        base = Path(out_dir) if out_dir is not None else Path(".")
        out_paths = [base / f"{c}.{fmt}" for c in chroms]

    workers = int(cores) if cores is not None else (os.cpu_count() or 1)
    workers = max(1, min(workers, len(chroms)))

    results: dict[str, Hierarchy] = {}
    if workers <= 1:
        for mat, chrom, out_path in zip(matrices, chroms, out_paths):
            _, results[chrom] = _worker(mat, chrom, params, resolution, fmt, out_path)
    else:
        with ProcessPoolExecutor(max_workers=workers) as ex:
            futs = {
                ex.submit(_worker, mat, chrom, params, resolution, fmt, out_path): chrom
                for mat, chrom, out_path in zip(matrices, chroms, out_paths)
            }
            for fut in as_completed(futs):
                chrom, hierarchy = fut.result()
                results[chrom] = hierarchy
                logger.info("Finished %s (%d/%d)", chrom, len(results), len(chroms))

    return {c: results[c] for c in chroms}

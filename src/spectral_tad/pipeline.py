from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd

from .config import BoundaryPolicy, TADParams
from .contact_map import ContactMatrix, load_contact_matrix, normalize_contact_matrix
from .domains import Hierarchy
from .formats import BED_FORMATS, BEDPE_FORMATS, write_domains
from .hierarchy import build_hierarchy
from .reporting import ensure_dir, summarize_hierarchy, write_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineOutputs:
    out_dir: Path
    hierarchy: Hierarchy
    domains_path: Path | None
    meta_path: Path


def spectral_tad(
    cont_mat: ContactMatrix | np.ndarray | pd.DataFrame,
    chrom: str | None,
    *,
    levels: int = 1,
    qual_filter: bool = False,
    policy: BoundaryPolicy | str = BoundaryPolicy.SILHOUETTE,
    eigenvalues: int = 2,
    min_size: int = 5,
    window_size: int | None = None,
    resolution: int | str = "auto",
    gap_threshold: float = 1.0,
    out_format: str = "none",
    out_path: str | Path | None = None,
) -> Hierarchy:
    """Call a TAD hierarchy on one chromosome.

    `cont_mat` may be a sparse 3-column table, an n x n matrix or an
    n x (n+3) matrix with BED coordinates in front; it is validated before any
    window is processed. With `out_format` other than "none" the domains are
    also written to `out_path` (defaults to the chromosome name).
    """

    if isinstance(cont_mat, ContactMatrix):
        matrix = normalize_contact_matrix(
            pd.DataFrame(cont_mat.values, columns=cont_mat.labels),
            chrom,
            resolution=cont_mat.resolution,
        )
    else:
        matrix = normalize_contact_matrix(cont_mat, chrom, resolution=resolution)

    hierarchy = build_hierarchy(
        matrix,
        str(chrom),
        levels=levels,
        min_size=min_size,
        policy=policy,
        eigenvalues=eigenvalues,
        window_size=window_size,
        gap_threshold=gap_threshold,
        qual_filter=qual_filter,
    )

    fmt = str(out_format).lower()
    if fmt in BED_FORMATS | BEDPE_FORMATS:
        write_domains(hierarchy, out_path if out_path is not None else str(chrom), fmt)
    elif fmt != "none":
        logger.warning("No file output, unsupported output format chosen: %s", out_format)

    return hierarchy


def run_pipeline(
    *,
    contact: str | Path,
    out_dir: str | Path,
    chrom: str,
    params: TADParams | None = None,
    resolution: int | str = "auto",
    out_format: str = "bed",
) -> PipelineOutputs:
    """Load a contact matrix file, call the hierarchy and write results.

    Writes `<chrom>.<out_format>` (unless out_format is "none") and `meta.json`.
    """

    params = (params or TADParams()).validate()
    out_dir = ensure_dir(out_dir)

    matrix = load_contact_matrix(contact, chrom, resolution=resolution)
    logger.info("Loaded %s: %d bins at %dbp", contact, matrix.n_bins, matrix.resolution)

    hierarchy = spectral_tad(matrix, chrom, **params.as_kwargs())

    domains_path = None
    fmt = str(out_format).lower()
    if fmt != "none":
        domains_path = write_domains(hierarchy, out_dir / f"{chrom}.{fmt}", fmt)

    meta = {
        "contact": str(contact),
        "n_bins": int(matrix.n_bins),
        "out_format": fmt,
        "params": params.as_kwargs(),
        "window_size_bins": params.resolve_window_size(matrix.resolution),
        **summarize_hierarchy(hierarchy),
    }
    meta_path = out_dir / "meta.json"
    write_json(meta, meta_path)

    return PipelineOutputs(
        out_dir=Path(out_dir),
        hierarchy=hierarchy,
        domains_path=domains_path,
        meta_path=meta_path,
    )

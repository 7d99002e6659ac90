from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd
from scipy.sparse import coo_matrix

from .config import MAX_RESOLUTION, MAX_TAD_SIZE_BP
from .errors import (
    InvalidShape,
    MatrixTooSmall,
    MissingChromosome,
    NonFiniteValue,
    ResolutionTooCoarse,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContactMatrix:
    """Square contact matrix for one chromosome.

    `labels[i]` is the genomic start coordinate of bin i; labels increase by
    `resolution`. Slices share memory with the parent matrix.
    """

    values: np.ndarray
    labels: np.ndarray
    resolution: int

    @property
    def n_bins(self) -> int:
        return int(self.values.shape[0])

    def slice(self, i0: int, i1: int) -> "ContactMatrix":
        """Square view over bins [i0, i1)."""
        return ContactMatrix(
            values=self.values[i0:i1, i0:i1],
            labels=self.labels[i0:i1],
            resolution=self.resolution,
        )

    def index_of(self, coords) -> np.ndarray:
        coords = np.asarray(coords, dtype=np.int64)
        idx = np.searchsorted(self.labels, coords)
        if np.any(idx >= self.n_bins) or np.any(self.labels[idx] != coords):
            raise KeyError("Coordinates are not bin starts of this matrix")
        return idx


def infer_resolution(labels: np.ndarray) -> int:
    """Most common distance between consecutive bin starts (smallest on ties)."""
    labels = np.asarray(labels, dtype=np.int64)
    if labels.shape[0] < 2:
        raise InvalidShape("Need at least two bins to estimate resolution")
    diffs = np.diff(labels)
    values, counts = np.unique(diffs, return_counts=True)
    return int(values[np.argmax(counts)])


def _numeric_labels(columns) -> np.ndarray | None:
    try:
        labels = np.asarray([float(c) for c in columns], dtype=np.float64)
    except (TypeError, ValueError):
        return None
    if not np.all(np.isfinite(labels)) or np.any(labels != np.round(labels)):
        return None
    return labels.astype(np.int64)


def _check_finite(M: np.ndarray) -> None:
    if not np.all(np.isfinite(M)):
        raise NonFiniteValue("Contact matrix must only contain real numbers")


def _sparse_to_full(triplets: np.ndarray, resolution: int | str) -> tuple[np.ndarray, np.ndarray, int]:
    if triplets.shape[0] < 2:
        raise InvalidShape("Matrix is too small to convert to full")
    _check_finite(triplets)

    i = triplets[:, 0].astype(np.int64)
    j = triplets[:, 1].astype(np.int64)
    w = triplets[:, 2].astype(np.float64)

    observed = np.unique(np.concatenate([i, j]))
    if resolution == "auto":
        logger.info("Estimating resolution")
        resolution = infer_resolution(observed)
    resolution = int(resolution)

    first = int(observed[0])
    if np.any((observed - first) % resolution != 0):
        raise InvalidShape(f"Sparse coordinates are not on a {resolution}bp grid")
    labels = np.arange(first, int(observed[-1]) + resolution, resolution, dtype=np.int64)
    n = labels.shape[0]

    r = (i - first) // resolution
    c = (j - first) // resolution
    # Mirror off-diagonal entries; keep diagonal ones once.
    off = r != c
    rows = np.concatenate([r, c[off]])
    cols = np.concatenate([c, r[off]])
    data = np.concatenate([w, w[off]])
    M = coo_matrix((data, (rows, cols)), shape=(n, n), dtype=np.float64).toarray()
    return M, labels, resolution


def normalize_contact_matrix(
    data: np.ndarray | pd.DataFrame,
    chrom: str | None,
    *,
    resolution: int | str = "auto",
) -> ContactMatrix:
    """Validate and canonicalise a contact matrix.

    Supported layouts:
      - n x n full matrix (column names, if numeric, are bin starts)
      - 3-column sparse triplets: bin1 start, bin2 start, count
      - n x (n+3) matrix whose first three columns are BED coordinates

    Raises the errors from :mod:`spectral_tad.errors` before any analysis.
    """

    if chrom is None or str(chrom) == "":
        raise MissingChromosome("Must specify chromosome")

    columns = None
    if isinstance(data, pd.DataFrame) and not isinstance(data.columns, pd.RangeIndex):
        columns = data.columns
    if np.ndim(data) != 2:
        raise InvalidShape("Contact matrix must be two-dimensional")
    n_rows, n_cols = np.shape(data)

    if n_rows == n_cols:
        M = np.asarray(data, dtype=np.float64)
        _check_finite(M)
        labels = _numeric_labels(columns) if columns is not None else None
        if labels is None:
            if resolution == "auto":
                raise InvalidShape(
                    "Full matrices without numeric column names need an explicit resolution"
                )
            labels = np.arange(n_rows, dtype=np.int64) * int(resolution)
        elif resolution == "auto":
            logger.info("Estimating resolution")
            resolution = infer_resolution(labels)
        resolution = int(resolution)
    elif n_cols == 3:
        logger.info("Converting to n x n matrix")
        M, labels, resolution = _sparse_to_full(np.asarray(data, dtype=np.float64), resolution)
    elif n_cols - n_rows == 3:
        logger.info("Converting to n x n matrix")
        frame = pd.DataFrame(data)
        starts = pd.to_numeric(frame.iloc[:, 1]).to_numpy(dtype=np.int64)
        ends = pd.to_numeric(frame.iloc[:, 2]).to_numpy(dtype=np.int64)
        resolution = int(ends[0] - starts[0])
        M = frame.iloc[:, 3:].to_numpy(dtype=np.float64)
        _check_finite(M)
        labels = starts
    else:
        raise InvalidShape("Contact matrix must be sparse or n x n or n x (n+3)!")

    if resolution > MAX_RESOLUTION:
        raise ResolutionTooCoarse("Resolution must be less than (or equal to) 200kb")
    if resolution <= 0:
        raise InvalidShape(f"Resolution must be positive; got {resolution}")
    if M.shape[0] < MAX_TAD_SIZE_BP / resolution:
        raise MatrixTooSmall("Matrix must be larger than 2 megabases divided by resolution")
    if np.any(np.diff(labels) <= 0):
        raise InvalidShape("Bin coordinates must be strictly increasing")

    return ContactMatrix(values=M, labels=np.asarray(labels, dtype=np.int64), resolution=int(resolution))


def _header_row(df: pd.DataFrame) -> np.ndarray | None:
    """Bin starts from the first row of a square table, if it holds them."""

    # Three columns are always sparse triplets.
    if df.shape[1] == 3 or df.shape[0] != df.shape[1] + 1:
        return None
    first = pd.to_numeric(df.iloc[0], errors="coerce").to_numpy(dtype=np.float64)
    if np.isnan(first).any() or np.any(np.diff(first) <= 0):
        return None
    return first


def _read_table(path: Path) -> pd.DataFrame:
    suf = path.suffix.lower()
    sep = "," if suf == ".csv" else r"\s+"
    df = pd.read_csv(path, sep=sep, header=None, engine="python")
    # Full matrices may carry a header row of bin starts.
    header = _header_row(df)
    if header is not None:
        body = df.iloc[1:].reset_index(drop=True).apply(pd.to_numeric)
        body.columns = header.astype(np.int64).tolist()
        return body
    return df


def load_contact_matrix(
    path: str | Path,
    chrom: str,
    *,
    resolution: int | str = "auto",
) -> ContactMatrix:
    """Load a contact matrix from disk and normalise it.

    Supported:
      - .npy dense square matrix (resolution required)
      - whitespace/tab separated text or .csv: sparse triplets, n x n
        (optionally with a header of bin starts) or n x (n+3)
      - .cool/.mcool (delegates to :func:`load_contact_matrix_cooler`)
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))

    suf = path.suffix.lower()
    if suf in {".cool", ".mcool"}:
        return load_contact_matrix_cooler(path, chrom=chrom)

    if suf == ".npy":
        M = np.load(path)
        if M.ndim != 2:
            raise InvalidShape(f"Expected 2D matrix in {path}")
        return normalize_contact_matrix(M, chrom, resolution=resolution)

    if suf in {".tsv", ".txt", ".csv", ".bed", ".mat"}:
        return normalize_contact_matrix(_read_table(path), chrom, resolution=resolution)

    raise ValueError(f"Unsupported contact map format: {path}")


def load_contact_matrix_cooler(path: str | Path, *, chrom: str) -> ContactMatrix:
    """Load one chromosome from a Cooler file (.cool/.mcool) as a ContactMatrix.

    Requires the optional `cooler` package. For .mcool files pass the URI
    with the resolution suffix (``file.mcool::/resolutions/25000``).
    """

    try:
        import cooler  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "Loading .cool/.mcool contact maps requires the optional dependency 'cooler'. "
            "Install with: pip install 'spectral-tad[hic]' (or pip install cooler)."
        ) from e

    uri = str(path)
    local = Path(uri.split("::", 1)[0])
    if not local.exists():
        raise FileNotFoundError(str(local))

    c = cooler.Cooler(uri)
    chrom = str(chrom)

    A = c.matrix(balance=False, sparse=True).fetch(chrom).tocsr().astype(np.float64, copy=False)
    # Some coolers store only the upper triangle.
    d = A.diagonal()
    A2 = (A + A.T).tocsr()
    A2.setdiag(d)

    bins = c.bins().fetch(chrom)
    labels = bins["start"].to_numpy(dtype=np.int64)
    resolution = int(c.binsize) if c.binsize is not None else infer_resolution(labels)

    frame = pd.DataFrame(A2.toarray(), columns=labels)
    return normalize_contact_matrix(frame, chrom, resolution=resolution)

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from .reporting import ensure_dir, write_json


def make_block_matrix(
    n_blocks: int,
    block_size: int,
    *,
    intra: float = 100.0,
    inter: float = 1.0,
) -> np.ndarray:
    """Noise-free block-diagonal contact matrix: `intra` inside blocks, `inter` elsewhere."""
    n = int(n_blocks) * int(block_size)
    block = np.arange(n) // int(block_size)
    same = block[:, None] == block[None, :]
    return np.where(same, float(intra), float(inter))


def tad_edges(sizes: Sequence[int]) -> np.ndarray:
    """Bin index where each domain starts, plus the total length."""
    return np.concatenate([[0], np.cumsum(np.asarray(sizes, dtype=np.int64))])


def make_tad_contact_matrix(
    tad_sizes: Sequence[int],
    *,
    n_sub: int = 2,
    seed: int = 0,
    depth: float = 200.0,
    scale: float = 8.0,
    tad_boost: float = 4.0,
    sub_boost: float = 2.0,
) -> np.ndarray:
    """Symmetric Poisson counts with distance decay and nested domain structure.

    Every domain in `tad_sizes` is split into `n_sub` equal sub-domains, which
    get a further enrichment on top of the domain-level boost.
    """
    rng = np.random.default_rng(int(seed))
    edges = tad_edges(tad_sizes)
    n = int(edges[-1])

    idx = np.arange(n)
    tad = np.searchsorted(edges, idx, side="right") - 1
    offset = idx - edges[tad]
    width = edges[tad + 1] - edges[tad]
    sub = tad * int(n_sub) + (offset * int(n_sub)) // width

    dist = np.abs(idx[:, None] - idx[None, :])
    lam = depth * np.exp(-dist / float(scale))
    lam = np.where(tad[:, None] == tad[None, :], lam * float(tad_boost), lam)
    lam = np.where(sub[:, None] == sub[None, :], lam * float(sub_boost), lam)

    counts = rng.poisson(lam).astype(np.float64)
    upper = np.triu(counts)
    return upper + np.triu(upper, k=1).T


def write_full_matrix(M: np.ndarray, labels: np.ndarray, out_path: str | Path) -> Path:
    """Tab-separated n x n matrix with a header row of bin starts."""
    out_path = Path(out_path)
    ensure_dir(out_path.parent)
    pd.DataFrame(M, columns=labels).to_csv(out_path, sep="\t", index=False)
    return out_path


def write_sparse_matrix(M: np.ndarray, labels: np.ndarray, out_path: str | Path) -> Path:
    """Upper-triangle triplets (bin1 start, bin2 start, count) of non-zero entries."""
    out_path = Path(out_path)
    ensure_dir(out_path.parent)
    i, j = np.nonzero(np.triu(M))
    df = pd.DataFrame({"bin1": labels[i], "bin2": labels[j], "count": M[i, j]})
    df.to_csv(out_path, sep="\t", index=False, header=False)
    return out_path


def synth_dataset(
    out_dir: str | Path,
    *,
    tad_sizes: Sequence[int] = (20, 30, 16, 24, 30, 20),
    n_sub: int = 2,
    binsize: int = 50_000,
    chrom: str = "chr1",
    seed: int = 0,
) -> dict[str, Path]:
    out_dir = ensure_dir(out_dir)

    M = make_tad_contact_matrix(tad_sizes, n_sub=n_sub, seed=seed)
    labels = np.arange(M.shape[0], dtype=np.int64) * int(binsize)

    full_path = write_full_matrix(M, labels, out_dir / "contact_full.tsv")
    sparse_path = write_sparse_matrix(M, labels, out_dir / "contact_sparse.tsv")

    edges = tad_edges(tad_sizes) * int(binsize)
    truth = pd.DataFrame({"chrom": chrom, "start": edges[:-1], "end": edges[1:]})
    truth_path = out_dir / "truth.bed"
    truth.to_csv(truth_path, sep="\t", index=False, header=False)

    meta = {
        "chrom": chrom,
        "binsize": int(binsize),
        "n_bins": int(M.shape[0]),
        "tad_sizes": [int(s) for s in tad_sizes],
        "n_sub": int(n_sub),
        "seed": int(seed),
        "contact_format": "n x n TSV with header of bin starts; sparse TSV triplets",
    }
    write_json(meta, out_dir / "meta.json")

    return {
        "full": full_path,
        "sparse": sparse_path,
        "truth": truth_path,
        "meta": out_dir / "meta.json",
    }

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from .domains import Hierarchy


def ensure_dir(p: str | Path) -> Path:
    path = Path(p)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_json(obj: Any, path: str | Path) -> None:
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True, default=str))


def summarize_hierarchy(hierarchy: Hierarchy) -> dict[str, Any]:
    """Per-level domain counts and sizes (in bins) for run metadata."""
    levels = {}
    for name, level in zip(hierarchy.level_names(), sorted(hierarchy.levels)):
        sizes = np.asarray(
            [r.n_bins(hierarchy.resolution) for r in hierarchy.levels[level]], dtype=np.int64
        )
        levels[name] = {
            "n_domains": int(sizes.shape[0]),
            "median_bins": float(np.median(sizes)) if sizes.size else None,
            "covered_bp": int(sizes.sum()) * int(hierarchy.resolution),
        }
    return {
        "chrom": hierarchy.chrom,
        "resolution": int(hierarchy.resolution),
        "levels": levels,
    }

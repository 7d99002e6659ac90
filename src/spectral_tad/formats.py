from __future__ import annotations

from pathlib import Path

import pandas as pd

from .domains import Hierarchy
from .reporting import ensure_dir

LEVEL_COLORS = ["0,0,0", "255,0,0", "0,255,0", "0,0,255"]

BED_FORMATS = {"bed", "hicexplorer"}
BEDPE_FORMATS = {"bedpe", "juicebox"}


def level_color(level: int) -> str:
    return LEVEL_COLORS[(int(level) - 1) % len(LEVEL_COLORS)]


def to_bed_frame(hierarchy: Hierarchy) -> pd.DataFrame:
    """All levels stacked in level order as chrom/start/end."""
    return hierarchy.to_dataframe()[["chrom", "start", "end"]].reset_index(drop=True)


def to_bedpe_frame(hierarchy: Hierarchy) -> pd.DataFrame:
    """Self-paired domains for Juicebox-style 2D annotation, coloured by level."""
    df = hierarchy.to_dataframe()
    return pd.DataFrame(
        {
            "chr1": df["chrom"],
            "x1": df["start"],
            "x2": df["end"],
            "chr2": df["chrom"],
            "y1": df["start"],
            "y2": df["end"],
            "name": ".",
            "score": ".",
            "strand1": ".",
            "strand2": ".",
            "color": [level_color(lev) for lev in df["level"]],
        }
    )


def to_ranges(hierarchy: Hierarchy) -> dict[str, pd.DataFrame]:
    """One range table per level, keyed Level_1..Level_L."""
    df = hierarchy.to_dataframe()
    out: dict[str, pd.DataFrame] = {}
    for level in sorted(hierarchy.levels):
        part = df[df["level"] == level].drop(columns="level").reset_index(drop=True)
        if part["silhouette_score"].isna().all():
            part = part.drop(columns="silhouette_score")
        out[f"Level_{level}"] = part
    return out


def format_domains(hierarchy: Hierarchy, out_format: str) -> pd.DataFrame:
    fmt = str(out_format).lower()
    if fmt in BED_FORMATS:
        return to_bed_frame(hierarchy)
    if fmt in BEDPE_FORMATS:
        return to_bedpe_frame(hierarchy)
    raise ValueError(
        f"Unknown out_format={out_format!r}; expected one of "
        f"{sorted(BED_FORMATS | BEDPE_FORMATS)}"
    )


def write_domains(hierarchy: Hierarchy, path: str | Path, out_format: str = "bed") -> Path:
    """Write a hierarchy as headerless tab-separated BED or BEDPE."""
    frame = format_domains(hierarchy, out_format)
    path = Path(path)
    ensure_dir(path.parent)
    frame.to_csv(path, sep="\t", header=False, index=False)
    return path

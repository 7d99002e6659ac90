from __future__ import annotations

from dataclasses import asdict, dataclass, field

import pandas as pd

DOMAIN_COLUMNS = ["chrom", "start", "end", "level", "silhouette_score"]


@dataclass(frozen=True)
class DomainRecord:
    """One called domain, half-open in base pairs: [start, end)."""

    chrom: str
    start: int
    end: int
    level: int = 1
    silhouette_score: float | None = None

    def n_bins(self, resolution: int) -> int:
        return int((self.end - self.start) // resolution)

    def contains(self, other: "DomainRecord") -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass
class Hierarchy:
    """Domains per level (1..L), each level sorted by start."""

    chrom: str
    resolution: int
    levels: dict[int, list[DomainRecord]] = field(default_factory=dict)

    def __getitem__(self, level: int) -> list[DomainRecord]:
        return self.levels[level]

    def level_names(self) -> list[str]:
        return [f"Level_{lev}" for lev in sorted(self.levels)]

    def to_dataframe(self) -> pd.DataFrame:
        rows = [asdict(r) for lev in sorted(self.levels) for r in self.levels[lev]]
        return pd.DataFrame(rows, columns=DOMAIN_COLUMNS)

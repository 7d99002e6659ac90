from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

MAX_RESOLUTION = 200_000
MAX_TAD_SIZE_BP = 2_000_000


class BoundaryPolicy(str, Enum):
    """How boundaries are chosen inside a window."""

    ZSCORE = "zscore"
    SILHOUETTE = "silhouette"


def default_window_size(resolution: int) -> int:
    """Window width in bins covering the 2Mb maximum TAD size."""
    return int(math.ceil(MAX_TAD_SIZE_BP / float(resolution)))


@dataclass(frozen=True)
class TADParams:
    """Parameters shared by every level of a hierarchy run.

    `window_size=None` means `ceil(2Mb / resolution)`.
    """

    levels: int = 1
    min_size: int = 5
    eigenvalues: int = 2
    window_size: int | None = None
    gap_threshold: float = 1.0
    policy: BoundaryPolicy = BoundaryPolicy.SILHOUETTE
    qual_filter: bool = False

    def __post_init__(self) -> None:
        # Accept plain strings from the CLI / callers.
        object.__setattr__(self, "policy", BoundaryPolicy(self.policy))

    def validate(self) -> "TADParams":
        if int(self.levels) < 1:
            raise ValueError(f"levels must be >= 1; got {self.levels}")
        if int(self.min_size) < 1:
            raise ValueError(f"min_size must be >= 1; got {self.min_size}")
        if int(self.eigenvalues) < 2:
            raise ValueError(f"eigenvalues must be >= 2; got {self.eigenvalues}")
        if self.window_size is not None and int(self.window_size) < 1:
            raise ValueError(f"window_size must be positive; got {self.window_size}")
        if not 0.0 <= float(self.gap_threshold) <= 1.0:
            raise ValueError(f"gap_threshold must be in [0, 1]; got {self.gap_threshold}")
        return self

    def resolve_window_size(self, resolution: int) -> int:
        if self.window_size is None:
            return default_window_size(resolution)
        return int(math.ceil(self.window_size))

    def as_kwargs(self) -> dict[str, Any]:
        return asdict(self)

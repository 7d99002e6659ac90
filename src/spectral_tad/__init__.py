"""Hierarchical TAD calling by windowed spectral clustering.

A window slides along the diagonal of a Hi-C contact matrix; inside each
window the rows are embedded with the top eigenvectors of the
degree-normalised contact matrix and domain boundaries sit at large gaps
between consecutive embedded rows. Domains are split recursively to build
a hierarchy.
"""

from .config import BoundaryPolicy, TADParams
from .contact_map import ContactMatrix, load_contact_matrix, normalize_contact_matrix
from .domains import DomainRecord, Hierarchy
from .errors import (
    InvalidShape,
    MatrixTooSmall,
    MissingChromosome,
    NonFiniteValue,
    ResolutionTooCoarse,
    SpectralTADError,
)
from .formats import to_bed_frame, to_bedpe_frame, to_ranges, write_domains
from .hierarchy import build_hierarchy
from .parallel import spectral_tad_par
from .pipeline import run_pipeline, spectral_tad
from .windows import find_domains

__all__ = [
    "BoundaryPolicy",
    "TADParams",
    "ContactMatrix",
    "load_contact_matrix",
    "normalize_contact_matrix",
    "DomainRecord",
    "Hierarchy",
    "InvalidShape",
    "MatrixTooSmall",
    "MissingChromosome",
    "NonFiniteValue",
    "ResolutionTooCoarse",
    "SpectralTADError",
    "to_bed_frame",
    "to_bedpe_frame",
    "to_ranges",
    "write_domains",
    "build_hierarchy",
    "spectral_tad_par",
    "run_pipeline",
    "spectral_tad",
    "find_domains",
]

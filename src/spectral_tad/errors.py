from __future__ import annotations


class SpectralTADError(ValueError):
    """Base class for input problems detected before any window is processed."""


class InvalidShape(SpectralTADError):
    """Matrix is neither square, 3-column sparse, nor n x (n+3) bed-augmented."""


class NonFiniteValue(SpectralTADError):
    """Matrix contains NaN or infinite values."""


class ResolutionTooCoarse(SpectralTADError):
    """Resolution is larger than 200kb."""


class MatrixTooSmall(SpectralTADError):
    """Matrix spans fewer than 2Mb worth of bins."""


class MissingChromosome(SpectralTADError):
    """No chromosome label was supplied."""

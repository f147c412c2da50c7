"""
Exceptions raised by the quilting engine.

All of them derive from ``QuiltError``, itself a ``ValueError``, so callers
that already guard synthesis calls with ``except ValueError`` keep working.
"""


class QuiltError(ValueError):
    """
    General exception for an issue during quilting
    """


class InvalidParameters(QuiltError):
    """
    Synthesis parameters are inconsistent (e.g. overlap >= block size)
    """


class OutOfBounds(QuiltError):
    """
    A block does not fit inside the image or canvas it refers to
    """


class ShapeMismatch(QuiltError):
    """
    Two regions that should line up have different shapes
    """


class EmptySurface(QuiltError):
    """
    An error surface has no rows or no columns, so no seam exists
    """


class NoValidCandidates(QuiltError):
    """
    The source image is too small to provide a single block
    """


class CanvasStateError(QuiltError):
    """
    The canvas was used out of order: finalized while incomplete, or written after finalizing
    """


class SynthesisStateError(QuiltError):
    """
    A synthesis was stepped after it had finished or failed
    """

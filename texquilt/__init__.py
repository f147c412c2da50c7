"""Image Quilting for Texture Synthesis.

This package implements the Efros & Freeman Image Quilting algorithm:
blocks sampled from a source texture are stitched into a larger canvas,
each cut along a minimum error boundary through its overlap.

Core classes and functions are exposed for use.
"""

__version__ = '0.1.0'

# Core synthesis
from .quilting import ImageQuilting, Synthesis, SynthesisState, quilt
from .params import QuiltParams

# Building blocks
from .image import Image, RGB8Image, RGBA8Image, Block, as_image, sample
from .error_surface import compute_overlap_error
from .seam import Seam, find_seam, find_horizontal_seam
from .selector import Selection, select_block
from .canvas import Canvas, OverlapRegion, place

from .errors import (
    QuiltError,
    InvalidParameters,
    OutOfBounds,
    ShapeMismatch,
    EmptySurface,
    NoValidCandidates,
    CanvasStateError,
    SynthesisStateError
)

# Public API exposed by `from texquilt import *`
__all__ = [
    'ImageQuilting',
    'Synthesis',
    'SynthesisState',
    'quilt',
    'QuiltParams',
    'Image',
    'RGB8Image',
    'RGBA8Image',
    'Block',
    'as_image',
    'sample',
    'compute_overlap_error',
    'Seam',
    'find_seam',
    'find_horizontal_seam',
    'Selection',
    'select_block',
    'Canvas',
    'OverlapRegion',
    'place',
    'QuiltError',
    'InvalidParameters',
    'OutOfBounds',
    'ShapeMismatch',
    'EmptySurface',
    'NoValidCandidates',
    'CanvasStateError',
    'SynthesisStateError'
]

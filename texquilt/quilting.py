import dataclasses
import multiprocessing
import time
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np
from tqdm import tqdm

from .canvas import Canvas, place
from .errors import SynthesisStateError
from .image import Image, as_image, candidate_origins, sample
from .params import QuiltParams
from .selector import Selection, candidate_set, cut_seam, pick_candidate, score_candidates


class SynthesisState(Enum):
    INIT = 'init'
    SCANNING = 'scanning'
    SAMPLE = 'sample'
    SCORE = 'score'
    SEAM = 'seam'
    COMPOSITE = 'composite'
    DONE = 'done'
    FAILED = 'failed'


# Synthesis only moves forward; FAILED is reachable from every working state
_TRANSITIONS = {
    SynthesisState.INIT: {SynthesisState.SCANNING},
    SynthesisState.SCANNING: {SynthesisState.SAMPLE},
    SynthesisState.SAMPLE: {SynthesisState.SCORE},
    SynthesisState.SCORE: {SynthesisState.SEAM},
    SynthesisState.SEAM: {SynthesisState.COMPOSITE},
    SynthesisState.COMPOSITE: {SynthesisState.SCANNING, SynthesisState.DONE},
    SynthesisState.DONE: set(),
    SynthesisState.FAILED: set(),
}


class Synthesis:
    """One quilting run over a fresh canvas, placed one block per ``step()``.

    Blocks are visited in raster scan order (left-to-right, top-to-bottom).
    Between steps the synthesis rests in SCANNING at ``position``. A step
    goes through SAMPLE, SCORE, SEAM and COMPOSITE and either completes or
    leaves the synthesis FAILED.
    """

    def __init__(self, source: Union[Image, np.ndarray], params: QuiltParams,
                 rng: Optional[np.random.Generator] = None, pool=None):
        self.source = as_image(source)
        self.params = params
        self.rng = rng if rng is not None else params.rng()
        self.pool = pool

        # Fails early with NoValidCandidates when the source cannot hold a block
        self._origins = candidate_origins(self.source.shape, params.block_size)
        height, width = params.size
        self.canvas = Canvas(height, width, self.source.channels)
        self._positions = list(params.positions())
        self._index = 0
        self.state = SynthesisState.INIT
        self.placements = []

    @property
    def total_blocks(self) -> int:
        return len(self._positions)

    @property
    def position(self) -> Optional[Tuple[int, int]]:
        """Canvas origin of the next block, None once every block is placed."""
        if self._index < len(self._positions):
            return self._positions[self._index]
        return None

    @property
    def done(self) -> bool:
        return self.state is SynthesisState.DONE

    def _enter(self, state: SynthesisState):
        if state not in _TRANSITIONS[self.state]:
            raise SynthesisStateError(f"Cannot go from {self.state.name} to {state.name}")
        self.state = state

    def step(self) -> Selection:
        """Places the block at the current position and advances the scan."""
        if self.state in (SynthesisState.DONE, SynthesisState.FAILED):
            raise SynthesisStateError(f"Synthesis is {self.state.name}, no more blocks to place")

        try:
            if self.state is SynthesisState.INIT:
                self._enter(SynthesisState.SCANNING)
            position = self._positions[self._index]
            params = self.params

            self._enter(SynthesisState.SAMPLE)
            origins = candidate_set(self._origins, params.max_candidates, self.rng)
            region = self.canvas.overlap_region(position, params.block_size, params.overlap)

            self._enter(SynthesisState.SCORE)
            errors = score_candidates(self.source.pixels, self.canvas, region, origins,
                                      params.metric, self.pool)
            chosen = pick_candidate(errors, params.tolerance, self.rng)
            block = sample(self.source, origins[chosen], params.block_size)

            self._enter(SynthesisState.SEAM)
            vertical_surface, horizontal_surface, seam = cut_seam(block.pixels, self.canvas, region,
                                                                  params.metric)

            self._enter(SynthesisState.COMPOSITE)
            place(self.canvas, position, block, seam, blend=params.blend_seam)
        except Exception:
            self.state = SynthesisState.FAILED
            raise

        selection = Selection(block.origin, float(errors[chosen]),
                              vertical_surface, horizontal_surface, seam)
        self.placements.append((position, selection))
        self._index += 1
        self._enter(SynthesisState.DONE if self._index == len(self._positions) else SynthesisState.SCANNING)
        return selection

    def run(self, progress: Optional[tqdm] = None) -> Image:
        """Steps until DONE and returns the finished texture."""
        while not self.done:
            self.step()
            if progress is not None:
                progress.update(1)
        return self.canvas.finalize()


class ImageQuilting:
    """Implements the Image Quilting algorithm for texture synthesis."""

    def __init__(self, params: Optional[QuiltParams] = None, verbose: bool = False):
        """Initializes the Image Quilting synthesizer.

        Args:
            params: Synthesis parameters; defaults match the quilt tool
                    (1024px output, 64px blocks, 12px overlap).
            verbose: Print the block layout and timing, and show a progress bar.
        """
        self.params = params if params is not None else QuiltParams()
        self.verbose = verbose

    def synthesize_texture(self, input_texture: Union[Image, np.ndarray],
                           output_size: Optional[Tuple[int, int]] = None,
                           rng: Optional[np.random.Generator] = None) -> Image:
        """Synthesizes a new texture from input_texture.

        Args:
            input_texture: Source texture, an Image or (H, W, C) array.
            output_size: (height, width) overriding params.size.
            rng: Random generator overriding params.seed.

        Returns:
            The synthesized texture as an Image.
        """
        params = self.params
        if output_size is not None:
            params = dataclasses.replace(params, size=output_size)

        rows, cols = params.layout
        if self.verbose:
            print(f"Synthesizing {rows}×{cols} blocks (Block: {params.block_size}px, "
                  f"Overlap: {params.overlap}px, Tolerance: {params.tolerance})...")
        start_time = time.time()

        with tqdm(total=rows * cols, desc="Quilting blocks", unit="block", disable=not self.verbose) as bar:
            if params.workers > 1:
                with multiprocessing.Pool(processes=params.workers) as pool:
                    result = Synthesis(input_texture, params, rng, pool).run(bar)
            else:
                result = Synthesis(input_texture, params, rng).run(bar)

        if self.verbose:
            print(f"Synthesis completed in {time.time() - start_time:.2f} seconds")
        return result


def quilt(source: Union[Image, np.ndarray], size: Union[int, Tuple[int, int]],
          block_size: int = 64, overlap: int = 12, **options) -> Image:
    """One-call synthesis; options are any other QuiltParams fields."""
    params = QuiltParams(size=size, block_size=block_size, overlap=overlap, **options)
    return ImageQuilting(params).synthesize_texture(source)

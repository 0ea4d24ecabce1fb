"""Seeded coherent noise source backed by OpenSimplex."""

import logging

import numpy as np
from opensimplex import OpenSimplex

from .constants import DEFAULT_SEED

logger = logging.getLogger(__name__)


class NoiseSource:
    """Deterministic 3D coherent noise with values in [-1, 1].

    Instances are callables ``noise(x, y, z)`` so they can be handed to
    anything that expects a plain noise function.  ``sample_grid`` is a
    vectorized shortcut for sampling a 2D slice at a fixed ``z``.
    """

    def __init__(self, seed: int = DEFAULT_SEED):
        self.seed = seed
        self._gen = OpenSimplex(seed)

    def __call__(self, x, y, z=0.0):
        return self._gen.noise3(x, y, z)

    def sample_grid(self, xs, ys, z=0.0):
        """Sample a (len(ys), len(xs)) slice of the noise field at depth *z*."""
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        zs = np.array([z], dtype=np.float64)
        # noise3array returns shape (len(z), len(y), len(x))
        return self._gen.noise3array(xs, ys, zs)[0]

    def __repr__(self):
        return f"NoiseSource(seed={self.seed})"


def make_noise(seed: int = DEFAULT_SEED) -> NoiseSource:
    """Build a seeded noise source."""
    logger.debug(f"Creating OpenSimplex noise source (seed={seed})")
    return NoiseSource(seed)

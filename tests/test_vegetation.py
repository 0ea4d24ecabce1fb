"""Tree scattering, exclusion zones, and the procedural tree."""
import math
import random
import unittest

import numpy as np

from terraindrive.models import ScatterInstance
from terraindrive.vegetation import (
    create_tree_mesh,
    curve_corridor_exclusion,
    place_instances,
    road_band_exclusion,
)


def bumpy(x, z):
    return 3.0 + math.sin(x * 0.05) + math.cos(z * 0.02)


class TestRoadBand(unittest.TestCase):

    def test_band_bounds(self):
        excluded = road_band_exclusion(12.0, 800.0)
        self.assertTrue(excluded(0.0, 0.0))
        self.assertTrue(excluded(17.9, -399.0))
        self.assertFalse(excluded(18.0, 0.0))
        self.assertFalse(excluded(-18.5, 0.0))
        self.assertFalse(excluded(0.0, 400.0))


class TestCorridor(unittest.TestCase):

    def test_follows_curved_centreline(self):
        zs = np.linspace(-100, 100, 41)
        path = np.column_stack([np.sin(zs * 0.05) * 20.0, np.zeros_like(zs), zs])
        excluded = curve_corridor_exclusion(path, 6.0)

        for x, _, z in path[::5]:
            self.assertTrue(excluded(x, z))
            self.assertTrue(excluded(x + 5.0, z))
        # The straight band misses the curve where it swings out
        self.assertFalse(excluded(0.0, 31.4))
        self.assertFalse(excluded(40.0, 0.0))


class TestPlacement(unittest.TestCase):

    def setUp(self):
        self.band = road_band_exclusion(12.0, 800.0)

    def place(self, seed=42, count=500, **kwargs):
        kwargs.setdefault('scale_range', (5.0, 5.0))
        return place_instances(count, self.band, bumpy, (400.0, 800.0),
                               rng=random.Random(seed), **kwargs)

    def test_reference_scatter(self):
        trees = self.place()
        self.assertEqual(len(trees), 500)
        for tree in trees:
            x, y, z = tree.position
            self.assertFalse(abs(x) < 18.0 and abs(z) < 400.0)
            self.assertLessEqual(abs(x), 180.0)
            self.assertLessEqual(abs(z), 360.0)
            self.assertEqual(y, bumpy(x, z))
            self.assertEqual(tree.scale, 5.0)
            self.assertGreaterEqual(tree.yaw, 0.0)
            self.assertLess(tree.yaw, 2 * math.pi)

    def test_deterministic_for_seed(self):
        self.assertEqual(self.place(7, 50), self.place(7, 50))
        self.assertNotEqual(self.place(7, 50), self.place(8, 50))

    def test_scale_range(self):
        trees = self.place(count=100, scale_range=(2.0, 4.0))
        scales = [t.scale for t in trees]
        self.assertTrue(all(2.0 <= s <= 4.0 for s in scales))
        self.assertGreater(len(set(scales)), 1)

    def test_model_attached(self):
        marker = object()
        trees = self.place(count=5, model=marker)
        self.assertTrue(all(t.model is marker for t in trees))

    def test_zero_count(self):
        self.assertEqual(self.place(count=0), [])

    def test_warns_when_mostly_rejected(self):
        def mostly(x, z):
            return x < 150.0
        with self.assertLogs('terraindrive.vegetation', level='WARNING'):
            place_instances(20, mostly, bumpy, (400.0, 800.0), rng=random.Random(1))


class TestInstanceMatrix(unittest.TestCase):

    def test_translate_rotate_scale(self):
        inst = ScatterInstance(position=(1.0, 2.0, 3.0), scale=2.0, yaw=math.pi / 2)
        m = inst.matrix
        self.assertEqual(m.shape, (4, 4))
        np.testing.assert_allclose(m[:3, 3], [1.0, 2.0, 3.0])
        # Local +X rotates onto -Z and doubles in length
        np.testing.assert_allclose(m @ [1.0, 0.0, 0.0, 0.0], [0.0, 0.0, -2.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(m @ [0.0, 1.0, 0.0, 0.0], [0.0, 2.0, 0.0, 0.0], atol=1e-12)


class TestTreeMesh(unittest.TestCase):

    def test_shape(self):
        tree = create_tree_mesh()
        lo, hi = tree.bounds
        self.assertAlmostEqual(hi[1], 1.8)
        self.assertLess(lo[1], 0.0)
        self.assertAlmostEqual(hi[0], 1.4)
        self.assertEqual(len(tree.visual.face_colors), len(tree.faces))

    def test_faces_wound_outwards(self):
        tree = create_tree_mesh()
        self.assertGreater(tree.volume, 0.0)


if __name__ == '__main__':
    unittest.main()

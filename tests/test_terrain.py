"""Heightfield builder and height query tests."""
import math
import unittest

import numpy as np

from terraindrive.models import TerrainConfig
from terraindrive.noise import NoiseSource
from terraindrive.terrain import (
    build_heightfield,
    build_terrain,
    build_terrain_mesh,
    render_height_texture,
    sample_height_at,
    sample_height_batch,
)


def wavy_noise(x, y, z):
    """Smooth analytic stand-in for coherent noise, in [-1, 1]."""
    return math.sin(x * 7.0) * math.cos(y * 5.0)


def flat_noise(x, y, z):
    return 0.0


SMALL = TerrainConfig(world_width=40.0, world_depth=80.0, width=9, depth=17,
                      height_scale=10.0, noise_scale=0.1, height_levels=None)


class TestHeightfield(unittest.TestCase):

    def test_reference_terrain_dimensions_and_range(self):
        config = TerrainConfig(world_width=400, world_depth=800, width=128,
                               depth=128, height_scale=30)
        grid = build_heightfield(config, NoiseSource(7))

        self.assertEqual(grid.heights.shape, (128, 128))
        self.assertEqual(grid.size, 16384)
        self.assertGreaterEqual(grid.heights.min(), 0.0)
        self.assertLessEqual(grid.heights.max(), 30.0)

    def test_centre_height_reproducible_for_fixed_seed(self):
        config = TerrainConfig(width=128, depth=128)
        first = build_heightfield(config, NoiseSource(1234))
        second = build_heightfield(config, NoiseSource(1234))

        self.assertEqual(first.height(0.0, 0.0), second.height(0.0, 0.0))
        np.testing.assert_array_equal(first.heights, second.heights)

    def test_different_seeds_differ(self):
        config = TerrainConfig(width=32, depth=32)
        a = build_heightfield(config, NoiseSource(1))
        b = build_heightfield(config, NoiseSource(2))
        self.assertFalse(np.array_equal(a.heights, b.heights))

    def test_vectorized_noise_matches_scalar_calls(self):
        config = TerrainConfig(width=16, depth=12, noise_scale=0.05)
        noise = NoiseSource(99)
        fast = build_heightfield(config, noise)
        slow = build_heightfield(config, lambda x, y, z: noise(x, y, z))
        np.testing.assert_allclose(fast.heights, slow.heights, atol=1e-9)

    def test_noise_sampled_at_scaled_indices(self):
        seen = []

        def recording_noise(x, y, z):
            seen.append((x, y, z))
            return 0.0

        config = TerrainConfig(width=3, depth=2, noise_scale=0.5)
        build_heightfield(config, recording_noise)
        self.assertEqual(seen, [
            (0.0, 0.0, 0.0), (0.5, 0.0, 0.0), (1.0, 0.0, 0.0),
            (0.0, 0.5, 0.0), (0.5, 0.5, 0.0), (1.0, 0.5, 0.0),
        ])

    def test_quantized_heights_are_whole_levels(self):
        config = TerrainConfig(width=20, depth=20, height_scale=30, height_levels=128)
        grid = build_heightfield(config, wavy_noise)
        levels = grid.heights * 128 / 30
        np.testing.assert_allclose(levels, np.round(levels), atol=1e-9)
        self.assertTrue(((levels >= 0) & (levels <= 128)).all())

    def test_continuous_heights(self):
        grid = build_heightfield(SMALL, flat_noise)
        np.testing.assert_allclose(grid.heights, 5.0)

    def test_out_of_range_noise_is_clipped(self):
        config = TerrainConfig(width=4, depth=4, height_scale=10, height_levels=None)
        grid = build_heightfield(config, lambda x, y, z: 1.5 if x > 0 else -1.5)
        self.assertEqual(grid.heights.min(), 0.0)
        self.assertEqual(grid.heights.max(), 10.0)

    def test_grid_is_read_only(self):
        grid = build_heightfield(SMALL, wavy_noise)
        with self.assertRaises(ValueError):
            grid.heights[0, 0] = 1.0


class TestTerrainMesh(unittest.TestCase):

    def setUp(self):
        self.grid, self.mesh = build_terrain(SMALL, wavy_noise)

    def test_counts(self):
        self.assertEqual(len(self.mesh.vertices), 9 * 17)
        self.assertEqual(len(self.mesh.faces), 2 * 8 * 16)
        self.assertEqual(self.mesh.uv.shape, (9 * 17, 2))

    def test_vertices_follow_grid(self):
        verts = self.mesh.vertices
        np.testing.assert_allclose(verts[:, 1], self.grid.heights.ravel())
        # First vertex at (-W/2, -D/2), last at (+W/2, +D/2)
        np.testing.assert_allclose(verts[0, [0, 2]], [-20.0, -40.0])
        np.testing.assert_allclose(verts[-1, [0, 2]], [20.0, 40.0])
        # Index i = j * width + ix
        np.testing.assert_allclose(verts[9 * 3 + 2, [0, 2]], [-20.0 + 2 * 5.0, -40.0 + 3 * 5.0])

    def test_flat_terrain_normals_point_up(self):
        mesh = build_terrain_mesh(build_heightfield(SMALL, flat_noise))
        np.testing.assert_allclose(mesh.normals, np.tile([0.0, 1.0, 0.0], (len(mesh.normals), 1)),
                                   atol=1e-12)

    def test_normals_are_unit_and_upward(self):
        lengths = np.linalg.norm(self.mesh.normals, axis=1)
        np.testing.assert_allclose(lengths, 1.0)
        self.assertTrue((self.mesh.normals[:, 1] > 0).all())

    def test_trimesh_keeps_vertex_order(self):
        tm = self.mesh.to_trimesh()
        self.assertEqual(len(tm.vertices), len(self.mesh.vertices))
        np.testing.assert_allclose(tm.vertices, self.mesh.vertices)


class TestHeightQuery(unittest.TestCase):

    def setUp(self):
        self.grid = build_heightfield(SMALL, wavy_noise)
        self.cw = SMALL.cell_width
        self.cd = SMALL.cell_depth

    def test_exact_at_grid_vertices(self):
        for j, i in [(0, 0), (3, 2), (8, 4), (16, 8), (10, 7)]:
            x = -SMALL.half_width + i * self.cw
            z = -SMALL.half_depth + j * self.cd
            self.assertAlmostEqual(self.grid.height(x, z), self.grid.heights[j, i], places=9)

    def test_continuous_across_cell_boundaries(self):
        eps = 1e-9
        for i in range(1, 8):
            x = -SMALL.half_width + i * self.cw
            for z in (-33.3, 0.7, 12.1):
                left = self.grid.height(x - eps, z)
                right = self.grid.height(x + eps, z)
                self.assertLess(abs(left - right), 1e-6)
        for j in range(1, 16):
            z = -SMALL.half_depth + j * self.cd
            below = self.grid.height(3.3, z - eps)
            above = self.grid.height(3.3, z + eps)
            self.assertLess(abs(below - above), 1e-6)

    def test_bilinear_midpoint(self):
        x = -SMALL.half_width + 2.5 * self.cw
        z = -SMALL.half_depth + 4.5 * self.cd
        h = self.grid.heights
        expected = (h[4, 2] + h[4, 3] + h[5, 2] + h[5, 3]) / 4
        self.assertAlmostEqual(self.grid.height(x, z), expected, places=9)

    def test_repeated_queries_identical(self):
        first = self.grid.height(1.2345, -6.789)
        for _ in range(5):
            self.assertEqual(self.grid.height(1.2345, -6.789), first)

    def test_clamped_outside_bounds(self):
        cases = [
            ((1e6, 1e6), (20.0, 40.0)),
            ((-1e6, -1e6), (-20.0, -40.0)),
            ((500.0, 3.0), (20.0, 3.0)),
            ((-7.5, -900.0), (-7.5, -40.0)),
        ]
        for (x, z), (bx, bz) in cases:
            self.assertEqual(self.grid.height(x, z), self.grid.height(bx, bz))

    def test_far_corner_equals_corner_sample(self):
        self.assertAlmostEqual(self.grid.height(20.0, 40.0), self.grid.heights[-1, -1], places=9)

    def test_batch_matches_scalar(self):
        rng = np.random.RandomState(3)
        xs = rng.uniform(-30, 30, 200)
        zs = rng.uniform(-60, 60, 200)
        batch = sample_height_batch(xs, zs, self.grid)
        scalar = [sample_height_at(x, z, self.grid) for x, z in zip(xs, zs)]
        np.testing.assert_allclose(batch, scalar, atol=1e-12)
        np.testing.assert_array_equal(self.grid.height_batch(xs, zs), batch)


class TestHeightTexture(unittest.TestCase):

    def test_size_and_mode(self):
        grid = build_heightfield(TerrainConfig(width=24, depth=16), wavy_noise)
        img = render_height_texture(grid)
        self.assertEqual(img.size, (24, 16))
        self.assertEqual(img.mode, 'L')

    def test_flat_levels(self):
        config = TerrainConfig(width=8, depth=8, height_scale=30, height_levels=128)
        img = render_height_texture(build_heightfield(config, flat_noise))
        pixels = np.array(img)
        self.assertTrue((pixels == 64).all())


if __name__ == '__main__':
    unittest.main()

"""Time each component of a TerrainDrive world build."""

import logging
import time
import sys
import os

# Ensure the project root is on the path
sys.path.insert(0, os.path.dirname(__file__))

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

from terraindrive.glb import build_scene
from terraindrive.models import RoadConfig, TerrainConfig
from terraindrive.noise import make_noise
from terraindrive.road import generate_road
from terraindrive.builder import WorldBuilder
from terraindrive.terrain import build_heightfield, build_terrain_mesh


def timed_build(seed: int):
    timings = {}
    config = TerrainConfig()
    noise = make_noise(seed)

    t0 = time.perf_counter()
    grid = build_heightfield(config, noise)
    timings["1. Heightfield sampling"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    build_terrain_mesh(grid)
    timings["2. Terrain mesh + normals"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    xs = [(i % 97) * 4.0 - 200.0 for i in range(100_000)]
    zs = [(i % 193) * 4.0 - 400.0 for i in range(100_000)]
    for x, z in zip(xs, zs):
        grid.height(x, z)
    timings["3. 100k scalar height queries"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    generate_road(RoadConfig(), config.world_depth, grid.height)
    timings["4. Road (plan + conform)"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    world = WorldBuilder(seed=seed, noise_fn=noise).build()
    timings["5. Full world build"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    build_scene(world)
    timings["6. Scene assembly"] = time.perf_counter() - t0

    print("\n" + "=" * 60)
    print(f"BUILD COMPLETE: seed {seed}")
    print("=" * 60)
    total = 0
    for label, dur in timings.items():
        print(f"  {label}: {dur:.2f}s")
        total += dur
    print(f"  TOTAL: {total:.2f}s")
    print("=" * 60)


if __name__ == "__main__":
    seed = int(sys.argv[1]) if len(sys.argv) > 1 else 42
    timed_build(seed)

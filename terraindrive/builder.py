"""WorldBuilder — thin orchestrator that runs the generation pipeline.

Terrain first, then the road and the trees, both of which query the
finished terrain.  Everything is returned as one immutable ``World``.
"""

import logging
import random
import time
from dataclasses import dataclass

from .constants import DEFAULT_SEED
from .models import (
    HeightGrid, TerrainMesh, TerrainConfig, RoadConfig, ScatterConfig,
)
from .noise import make_noise
from .road import RoadBuild, generate_road
from .terrain import build_terrain
from .vegetation import (
    road_band_exclusion, curve_corridor_exclusion, place_instances,
    create_tree_mesh,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class World:
    seed: int
    grid: HeightGrid
    terrain_mesh: TerrainMesh
    road: RoadBuild
    trees: list
    tree_model: object

    @property
    def terrain_config(self) -> TerrainConfig:
        return self.grid.config

    def height(self, x, z) -> float:
        """Terrain height query used for vehicle placement every frame."""
        return self.grid.height(x, z)


class WorldBuilder:
    def __init__(self, terrain: TerrainConfig = TerrainConfig(),
                 road: RoadConfig = RoadConfig(),
                 scatter: ScatterConfig = ScatterConfig(),
                 seed: int = DEFAULT_SEED, noise_fn=None):
        self.terrain = terrain
        self.road = road
        self.scatter = scatter
        self.seed = seed
        self.noise_fn = noise_fn if noise_fn is not None else make_noise(seed)

    def build(self, tree_model=None, exclusion=None,
              progress_callback=None) -> World:
        """Generate terrain, road, and trees.

        *tree_model* defaults to the procedural tree; *exclusion* defaults
        to the band around the road plan, or to the corridor around the
        planned centreline when ``scatter.corridor`` is set.
        """
        def _progress(pct, msg):
            if progress_callback:
                progress_callback(pct, msg)

        timings = {}

        _progress(0, "Building terrain...")
        t0 = time.perf_counter()
        grid, terrain_mesh = build_terrain(self.terrain, self.noise_fn)
        timings['1_terrain'] = time.perf_counter() - t0

        _progress(40, "Laying road...")
        t0 = time.perf_counter()
        road = generate_road(self.road, self.terrain.world_depth, grid.height)
        timings['2_road'] = time.perf_counter() - t0

        _progress(70, "Planting trees...")
        t0 = time.perf_counter()
        if tree_model is None:
            tree_model = create_tree_mesh()
        if exclusion is None and self.scatter.corridor:
            exclusion = curve_corridor_exclusion(
                road.planned_points,
                self.road.road_width * self.scatter.band_factor)
        elif exclusion is None:
            exclusion = road_band_exclusion(
                self.road.road_width, self.terrain.world_depth,
                self.scatter.band_factor)
        trees = place_instances(
            self.scatter.count, exclusion, grid.height,
            (self.terrain.world_width, self.terrain.world_depth),
            scale_range=self.scatter.scale_range, model=tree_model,
            rng=random.Random(self.seed), margin=self.scatter.margin)
        timings['3_trees'] = time.perf_counter() - t0

        _progress(100, "World ready")
        logger.info("World build timing: " + ", ".join(
            f"{label}={dur:.2f}s" for label, dur in sorted(timings.items())))

        return World(seed=self.seed, grid=grid, terrain_mesh=terrain_mesh,
                     road=road, trees=trees, tree_model=tree_model)

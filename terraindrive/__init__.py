"""TerrainDrive package — procedural terrain, road, and scatter generation
for a small driving demo.
"""

from terraindrive.builder import World, WorldBuilder
from terraindrive.models import (
    TerrainConfig, RoadConfig, ScatterConfig, VehicleConfig,
    HeightGrid, TerrainMesh, RoadMesh, ScatterInstance,
)

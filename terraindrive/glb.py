"""GLB (binary glTF) export of a generated world.

Assembles the terrain, road, vehicle, and tree instances into a single
``trimesh.Scene``.  Trees are scene-graph nodes that all reference one
shared geometry, each with its own transform.
"""

import logging
import time

import numpy as np
import trimesh
from trimesh import transformations
from trimesh.visual.material import PBRMaterial

from .constants import GRASS_TEXTURE_TILE, VEHICLE_EXTENTS
from .models import PathManager
from .vehicle import VehicleState

logger = logging.getLogger(__name__)

# Solid PBR colours per part (RGBA, 0-1)
TYPE_COLORS = {
    'terrain': [0.30, 0.65, 0.30, 1.0],   # green
    'road':    [0.25, 0.25, 0.25, 1.0],   # dark asphalt
    'vehicle': [1.00, 0.00, 0.00, 1.0],   # red
}


def _material(name, texture=None, double_sided=False):
    if texture is not None:
        return PBRMaterial(name=name, baseColorTexture=texture,
                           metallicFactor=0.0, roughnessFactor=0.9,
                           doubleSided=double_sided)
    return PBRMaterial(name=name, baseColorFactor=TYPE_COLORS[name],
                       metallicFactor=0.0, roughnessFactor=0.9,
                       doubleSided=double_sided)


def _terrain_geometry(world, texture=None):
    cfg = world.terrain_config
    mesh = world.terrain_mesh.to_trimesh(
        _material('terrain', texture, double_sided=True))
    # Grass repeats every GRASS_TEXTURE_TILE world units
    repeat = np.array([cfg.world_width / GRASS_TEXTURE_TILE,
                       cfg.world_depth / GRASS_TEXTURE_TILE])
    mesh.visual.uv = world.terrain_mesh.uv * repeat
    return mesh


def _vehicle_geometry(vehicle: VehicleState):
    box = trimesh.creation.box(extents=VEHICLE_EXTENTS)
    box.visual = trimesh.visual.TextureVisuals(material=_material('vehicle'))
    transform = transformations.concatenate_matrices(
        transformations.translation_matrix(vehicle.position),
        transformations.rotation_matrix(vehicle.yaw, [0, 1, 0]),
    )
    return box, transform


def build_scene(world, assets=None, vehicle: VehicleState = None) -> trimesh.Scene:
    """Assemble *world* into a scene ready for export or display."""
    grass = assets.grass_texture if assets is not None else None
    road_tex = assets.road_texture if assets is not None else None

    scene = trimesh.Scene()
    scene.add_geometry(_terrain_geometry(world, grass),
                       geom_name='terrain', node_name='terrain')
    scene.add_geometry(world.road.mesh.to_trimesh(_material('road', road_tex)),
                       geom_name='road', node_name='road')

    box, transform = _vehicle_geometry(vehicle or VehicleState())
    scene.add_geometry(box, geom_name='vehicle', node_name='vehicle',
                       transform=transform)

    if world.trees:
        first, rest = world.trees[0], world.trees[1:]
        scene.add_geometry(world.tree_model, geom_name='tree',
                           node_name='tree_0', transform=first.matrix)
        for i, inst in enumerate(rest, start=1):
            scene.graph.update(frame_to=f'tree_{i}',
                               frame_from=scene.graph.base_frame,
                               matrix=inst.matrix, geometry='tree')

    logger.info(f"Scene: {len(scene.geometry)} geometries, "
                f"{len(scene.graph.nodes_geometry)} nodes "
                f"({len(world.trees)} tree instances)")
    return scene


def generate_glb(world, output_path: str, assets=None,
                 vehicle: VehicleState = None) -> str:
    """Export *world* as a GLB file under the output directory.

    Returns the absolute path to the generated GLB file.
    """
    output_path = PathManager.get_output_path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    t0 = time.perf_counter()
    scene = build_scene(world, assets=assets, vehicle=vehicle)
    scene.export(str(output_path), file_type='glb')

    logger.info(f"GLB file generated in {time.perf_counter() - t0:.1f}s: "
                f"{output_path}")
    return str(output_path.resolve())

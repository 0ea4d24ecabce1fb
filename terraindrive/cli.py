"""Click CLI commands for TerrainDrive."""

import logging

import click

from .assets import AssetLoadError, load_assets
from .builder import WorldBuilder
from .constants import DEFAULT_SEED
from .glb import generate_glb
from .models import PathManager, ScatterConfig, TerrainConfig
from .noise import make_noise
from .terrain import build_heightfield, render_height_texture
from .vehicle import DriveInput, simulate

logger = logging.getLogger(__name__)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """TerrainDrive CLI for generating and driving over procedural terrain."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@click.option('--seed', default=DEFAULT_SEED, show_default=True, help='Noise and scatter seed')
@click.option('--output', '-o', default='world.glb', help='Output GLB file path')
@click.option('--trees', default=ScatterConfig().count, show_default=True, help='Number of trees')
@click.option('--assets', 'asset_dir', default=None,
              help='Directory with grass.jpg, road.jpg and tree.glb')
@click.option('--corridor', is_flag=True,
              help='Keep trees off the curved road instead of a straight band')
def build(seed: int, output: str, trees: int, asset_dir: str, corridor: bool):
    """Generate a world and export it as GLB."""
    try:
        assets = load_assets(asset_dir) if asset_dir else None
        builder = WorldBuilder(
            scatter=ScatterConfig(count=trees, corridor=corridor), seed=seed)
        world = builder.build(
            tree_model=assets.tree_model if assets else None,
            progress_callback=lambda pct, msg: click.echo(f"[{pct:3.0f}%] {msg}"))
        path = generate_glb(world, output, assets=assets)
    except AssetLoadError as e:
        raise click.ClickException(f"Error loading assets: {e}")
    except Exception as e:
        logger.error(f"Error building world: {e}")
        raise click.ClickException(str(e))

    click.echo(f"Terrain: {world.grid.width}x{world.grid.depth} samples, "
               f"centre height {world.height(0.0, 0.0):.2f}")
    click.echo(f"Road: {world.road.length:.1f} long, "
               f"{len(world.road.mesh.vertices)} vertices")
    click.echo(f"Trees: {len(world.trees)}")
    click.echo(f"GLB: {path}")


@cli.command()
@click.option('--seed', default=DEFAULT_SEED, show_default=True, help='Noise seed')
@click.option('--output', '-o', default='heightmap.png', help='Output PNG file path')
def heightmap(seed: int, output: str):
    """Write a grayscale preview of the heightfield."""
    grid = build_heightfield(TerrainConfig(), make_noise(seed))
    path = PathManager.get_output_path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    render_height_texture(grid).save(path)
    click.echo(f"Heightmap: {path}")


@cli.command()
@click.option('--seed', default=DEFAULT_SEED, show_default=True, help='Noise seed')
@click.option('--frames', default=600, show_default=True, help='Frames to simulate at 60 fps')
@click.option('--throttle/--brake', default=True, help='Hold forward or reverse')
@click.option('--steer', type=click.Choice(['left', 'right', 'none']), default='none')
def drive(seed: int, frames: int, throttle: bool, steer: str):
    """Drive the vehicle headlessly over generated terrain."""
    builder = WorldBuilder(scatter=ScatterConfig(count=0), seed=seed)
    world = builder.build()
    controls = DriveInput(forward=throttle, backward=not throttle,
                          left=steer == 'left', right=steer == 'right')
    vehicle, camera = simulate(world.height, frames, controls)

    x, y, z = vehicle.position
    cx, cy, cz = camera.position
    click.echo(f"Vehicle: ({x:.2f}, {y:.2f}, {z:.2f}) "
               f"yaw={vehicle.yaw:.3f} speed={vehicle.speed:.4f}")
    click.echo(f"Camera: ({cx:.2f}, {cy:.2f}, {cz:.2f})")


if __name__ == '__main__':
    cli()

"""Texture and model loading.

All assets load together before generation starts; any failure aborts
the whole load with ``AssetLoadError`` and nothing is returned.
"""

import logging
import pathlib
from dataclasses import dataclass

import trimesh
from PIL import Image

from .constants import ASSET_DIR, ASSET_PATHS

logger = logging.getLogger(__name__)


class AssetLoadError(RuntimeError):
    """A texture or model could not be loaded."""


@dataclass(frozen=True, eq=False)
class Assets:
    grass_texture: Image.Image
    road_texture: Image.Image
    tree_model: trimesh.Trimesh


def _load_texture(path: pathlib.Path) -> Image.Image:
    with Image.open(path) as img:
        return img.convert("RGB")


def _load_model(path: pathlib.Path) -> trimesh.Trimesh:
    # Flatten glTF scenes into one mesh so instances share a single geometry
    return trimesh.load(str(path), force='mesh')


def load_assets(asset_dir=ASSET_DIR, paths=ASSET_PATHS) -> Assets:
    """Load the grass and road textures and the tree model from *asset_dir*."""
    asset_dir = pathlib.Path(asset_dir)
    loaders = {
        'grass_texture': _load_texture,
        'road_texture': _load_texture,
        'tree_model': _load_model,
    }

    loaded = {}
    for key, loader in loaders.items():
        path = asset_dir / paths[key]
        try:
            loaded[key] = loader(path)
        except Exception as e:
            logger.error(f"Failed to load {key} from {path}: {e}")
            raise AssetLoadError(f"could not load {key} from {path}: {e}") from e
        logger.info(f"Loaded {key}: {path.name}")

    return Assets(**loaded)

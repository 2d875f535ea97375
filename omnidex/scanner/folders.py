"""
Folder discovery - which folders are assets, and what we know about them
without asking the marketplace.
"""
import hashlib
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..models.asset import AssetRecord


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_CATEGORY = "material"

VALID_CATEGORIES = (
    "2d-asset",
    "3d-model",
    "animation",
    "audio",
    "education-tutorial",
    "environment",
    "game-system",
    "game-template",
    "hdri",
    "material",
    "smart-asset",
    "tool-and-plugin",
    "ui",
    "vfx",
)

CATEGORY_ALIASES = {
    "2d-asset": ("2d", "2d-assets", "2d-graphics", "graphics", "images"),
    "3d-model": ("3d", "3d-assets", "3d-models", "models", "mesh", "meshes"),
    "material": ("texture", "textures", "textures-materials", "textures-&-materials", "materials"),
    "animation": ("animations", "anim", "anims", "motion", "mocap"),
    "audio": ("sound", "sounds", "music", "sfx", "audio-files"),
    "environment": ("env", "environment-assets", "environments", "landscape", "terrain"),
    "vfx": ("effects", "particle", "particles", "visual-effects"),
    "ui": ("interface", "gui", "hud", "menu", "menus"),
    "game-system": ("gameplay", "mechanics", "systems"),
    "tool-and-plugin": ("tool", "tools", "plugin", "plugins", "utility", "utilities"),
    "game-template": ("template", "templates", "blueprint", "blueprints"),
    "education-tutorial": ("tutorial", "tutorials", "learning", "course", "courses"),
    "smart-asset": ("smart", "intelligent", "procedural"),
    "hdri": ("hdr", "hdri-images", "skybox", "skyboxes"),
}

_ALIAS_LOOKUP = {alias: category for category, aliases in CATEGORY_ALIASES.items() for alias in aliases}


def normalize_category_name(name: str) -> str:
    return name.lower().replace(" ", "-").replace("_", "-")


def map_to_valid_category(category: str) -> str:
    """Known category or alias -> canonical category; anything else -> material."""
    if category in VALID_CATEGORIES:
        return category
    return _ALIAS_LOOKUP.get(category, DEFAULT_CATEGORY)


def _category_from_json(folder: Path) -> Optional[str]:
    try:
        json_files = sorted(p for p in folder.iterdir() if p.is_file() and p.suffix == ".json")
    except OSError as e:
        logger.warning(f"Could not list {folder}: {e}")
        return None

    for json_file in json_files:
        try:
            payload = json.loads(json_file.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            continue
        if not isinstance(payload, dict):
            continue
        for key in ("category", "asset_type"):
            value = payload.get(key)
            if isinstance(value, str):
                return value
    return None


def determine_asset_type(folder: PathLike) -> str:
    """
    Category from a `category` / `asset_type` field in a JSON file in the
    folder, else from the parent folder's name.
    """
    folder = Path(folder)
    category = _category_from_json(folder)
    if category is None:
        category = folder.parent.name or "uncategorized"
    return map_to_valid_category(normalize_category_name(category))


def list_asset_folders(root: PathLike, recursive: bool = False) -> list[Path]:
    """Subfolders of `root` (all descendants when recursive), sorted."""
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Scan location does not exist: {root}")

    if not recursive:
        return sorted(p for p in root.iterdir() if p.is_dir())

    folders = []
    for dirpath, dirnames, _ in os.walk(root, onerror=lambda e: logger.warning(f"Error walking {root}: {e}")):
        dirnames.sort()
        folders.extend(Path(dirpath) / name for name in dirnames)
    return sorted(folders)


def folder_size(folder: PathLike) -> int:
    """Total size in bytes of every file below `folder`."""
    total = 0
    for dirpath, _, filenames in os.walk(folder):
        for filename in filenames:
            path = os.path.join(dirpath, filename)
            try:
                total += os.path.getsize(path)
            except OSError as e:
                logger.warning(f"Couldn't get size of {path}: {e}")
    return total


def folder_fingerprint(folder: PathLike) -> str:
    """SHA-256 over the folder name and its (relative path, size) listing."""
    folder = Path(folder)
    digest = hashlib.sha256(folder.name.encode("utf-8"))
    for dirpath, dirnames, filenames in os.walk(folder):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            try:
                size = path.stat().st_size
            except OSError:
                continue
            digest.update(f"{path.relative_to(folder).as_posix()}:{size}\n".encode("utf-8"))
    return digest.hexdigest()


def describe_folder(folder: PathLike, scan_location_id: Optional[int] = None) -> AssetRecord:
    """New (unsaved) asset record for a folder."""
    folder = Path(folder)
    stat = folder.stat()
    return AssetRecord(
        name=folder.name,
        file_path=str(folder),
        asset_type=determine_asset_type(folder),
        file_size=folder_size(folder),
        created_date=datetime.fromtimestamp(stat.st_ctime),
        modified_date=datetime.fromtimestamp(stat.st_mtime),
        file_hash=folder_fingerprint(folder),
        scan_location_id=scan_location_id,
    )

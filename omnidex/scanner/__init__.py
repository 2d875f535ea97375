from .folders import (
    VALID_CATEGORIES,
    describe_folder,
    determine_asset_type,
    folder_fingerprint,
    folder_size,
    list_asset_folders,
    map_to_valid_category,
)

__all__ = [
    "VALID_CATEGORIES",
    "describe_folder",
    "determine_asset_type",
    "folder_fingerprint",
    "folder_size",
    "list_asset_folders",
    "map_to_valid_category",
]

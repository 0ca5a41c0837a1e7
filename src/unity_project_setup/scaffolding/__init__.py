"""Folder scaffolding for Unity projects."""

from .folders import (
    DEFAULT_FOLDERS,
    AssetIndex,
    FolderScaffolder,
    FolderSpec,
    LoggingAssetIndex,
    assets_dir,
    ensure_folders,
)

__all__ = [
    "DEFAULT_FOLDERS",
    "AssetIndex",
    "FolderScaffolder",
    "FolderSpec",
    "LoggingAssetIndex",
    "assets_dir",
    "ensure_folders",
]

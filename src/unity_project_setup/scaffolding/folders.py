from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple


logger = logging.getLogger(__name__)


FolderSpec = Sequence[Tuple[str, Sequence[str]]]

DEFAULT_FOLDERS: List[Tuple[str, Tuple[str, ...]]] = [
    ("Art", ("Animation", "Models", "Materials", "Textures")),
    ("Audio", ("Music", "Sounds")),
    ("Code", ("Scripts", "Shaders", "Editor")),
    ("Prefabs", ()),
    ("Scenes", ()),
    ("Presets", ()),
    ("ImportedAssets", ()),
]


class AssetIndex(Protocol):
    def refresh(self) -> None: ...


class LoggingAssetIndex:
    """Asset index stand-in for projects edited outside the editor.

    The editor rescans ``Assets`` on focus, so there is nothing to trigger
    from here beyond recording that a refresh is due.
    """

    def refresh(self) -> None:
        logger.info("Asset folders changed; the editor will re-import them on next focus.")


def assets_dir(project: str | Path) -> Path:
    """Return the ``Assets`` directory of a Unity project.

    A path that already points at an ``Assets`` directory is returned as is.
    """

    p = Path(project).expanduser()
    return p if p.name == "Assets" else p / "Assets"


def _ensure_dir(path: Path, created: List[Path]) -> None:
    if path.is_dir():
        return
    # A missing parent raises FileNotFoundError, a file at the path FileExistsError
    path.mkdir()
    created.append(path)
    logger.debug("Created folder %s", path)


def ensure_folders(root: str | Path, spec: FolderSpec = DEFAULT_FOLDERS, refresh: Optional[AssetIndex] = None) -> List[Path]:
    """Create every missing ``root/parent`` and ``root/parent/child`` folder.

    Existing folders are left untouched, so running the same spec twice
    yields the same tree. Filesystem errors propagate; folders created
    before the failure are kept.

    Args:
        root: Directory the spec is relative to (normally ``Assets``).
        spec: ``(parent, children)`` pairs.
        refresh: Asset index notified once all folders exist.

    Returns:
        List[Path]: Folders created by this call, in creation order.
    """

    base = Path(root)
    created: List[Path] = []
    for parent, children in spec:
        parent_path = base / parent
        _ensure_dir(parent_path, created)
        for child in children:
            _ensure_dir(parent_path / child, created)

    (refresh or LoggingAssetIndex()).refresh()
    return created


class FolderScaffolder:
    """Creates the default folder layout of a Unity project."""

    def __init__(self, spec: Optional[FolderSpec] = None, asset_index: Optional[AssetIndex] = None):
        self.spec: FolderSpec = spec if spec is not None else DEFAULT_FOLDERS
        self.asset_index = asset_index or LoggingAssetIndex()

    @classmethod
    def from_entries(cls, entries: Optional[Iterable], asset_index: Optional[AssetIndex] = None) -> "FolderScaffolder":
        """Build a scaffolder from configured ``FolderEntry`` items (None keeps the defaults)."""

        if entries is None:
            return cls(asset_index=asset_index)
        return cls([(e.name, tuple(e.children)) for e in entries], asset_index=asset_index)

    def create_default_folders(self, project: str | Path) -> List[Path]:
        root = assets_dir(project)
        # A new project may not have Assets yet; its root must already exist
        root.mkdir(exist_ok=True)
        created = ensure_folders(root, self.spec, self.asset_index)
        logger.info("Ensured %d folder groups under %s (%d created)", len(self.spec), root, len(created))
        return created

"""Package manager backed by a Unity project's ``Packages/manifest.json``.

The Unity package manager resolves the project's packages from the
``dependencies`` table of that file, so editing it is equivalent to adding or
removing packages from the editor window.
"""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import Executor
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..errors import PackageManagerError
from .client import PackageInfo
from .operations import FutureOperation


logger = logging.getLogger(__name__)


def split_identifier(identifier: str) -> Tuple[str, Optional[str]]:
    """Split ``name@version`` into its parts; the version is optional."""

    name, _, version = identifier.strip().partition("@")
    if not name:
        raise PackageManagerError(f"Invalid package identifier: {identifier!r}")
    return name, version or None


def _source_of(version: str) -> str:
    if version.startswith("file:"):
        return "local"
    if version.startswith(("git", "https://", "http://", "ssh://")) or version.endswith(".git"):
        return "git"
    return "registry"


class RegistryClient:
    """Minimal client of an npm-style package registry."""

    def __init__(self, url: str, timeout: float = 15.0):
        self.url = url.rstrip("/")
        self.timeout = timeout

    def latest_version(self, name: str) -> str:
        try:
            response = requests.get(f"{self.url}/{name}", timeout=self.timeout)
        except requests.RequestException as e:
            raise PackageManagerError(f"Could not reach package registry for {name}: {e}") from e
        if response.status_code == 404:
            raise PackageManagerError(f"Package {name} was not found in {self.url}")
        try:
            response.raise_for_status()
            latest = response.json()["dist-tags"]["latest"]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise PackageManagerError(f"Could not resolve latest version of {name}: {e}") from e
        return str(latest)


class ManifestPackageManager:
    def __init__(self, project_path: str | Path, registry: RegistryClient, executor: Executor):
        self.project_path = Path(project_path)
        self.registry = registry
        self.executor = executor
        # Serializes read-modify-write cycles on manifest.json
        self._write_lock = threading.Lock()

    @property
    def manifest_path(self) -> Path:
        return self.project_path / "Packages" / "manifest.json"

    # --------------------------- Protocol ---------------------------

    def list_installed(self) -> FutureOperation[List[PackageInfo]]:
        return FutureOperation(self.executor.submit(self.read_installed))

    def add_and_remove(self, to_add: Optional[List[str]], to_remove: Optional[List[str]]) -> FutureOperation[None]:
        return FutureOperation(self.executor.submit(self.apply_changes, to_add, to_remove))

    # --------------------------- Blocking work ---------------------------

    def read_installed(self) -> List[PackageInfo]:
        deps = self._dependencies(self._load())
        return [PackageInfo(name=name, version=str(version), source=_source_of(str(version))) for name, version in deps.items()]

    def apply_changes(self, to_add: Optional[List[str]], to_remove: Optional[List[str]]) -> None:
        with self._write_lock:
            self._apply_locked(to_add, to_remove)

    def _apply_locked(self, to_add: Optional[List[str]], to_remove: Optional[List[str]]) -> None:
        data = self._load()
        deps = self._dependencies(data)

        missing = [name for name in (to_remove or []) if name not in deps]
        if missing:
            raise PackageManagerError(f"Cannot remove packages that are not installed: {', '.join(missing)}")

        # Resolve every version before touching the file so a failure leaves it unchanged
        resolved: List[Tuple[str, str]] = []
        for identifier in to_add or []:
            name, version = split_identifier(identifier)
            resolved.append((name, version or self.registry.latest_version(name)))

        for name in to_remove or []:
            del deps[name]
            logger.info("Removed %s", name)
        for name, version in resolved:
            deps[name] = version
            logger.info("Added %s@%s", name, version)

        self._save(data)

    # --------------------------- File IO ---------------------------

    def _load(self) -> Dict[str, Any]:
        path = self.manifest_path
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise PackageManagerError(f"No package manifest at {path}. Is this a Unity project?") from e
        try:
            data = json.loads(text or "{}")
        except json.JSONDecodeError as e:
            raise PackageManagerError(f"Package manifest {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise PackageManagerError(f"Package manifest {path} must contain a JSON object")
        return data

    def _dependencies(self, data: Dict[str, Any]) -> Dict[str, Any]:
        deps = data.setdefault("dependencies", {})
        if not isinstance(deps, dict):
            raise PackageManagerError(f"'dependencies' in {self.manifest_path} must be an object")
        return deps

    def _save(self, data: Dict[str, Any]) -> None:
        self.manifest_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol

from .operations import Operation


@dataclass(frozen=True)
class PackageInfo:
    name: str
    version: str = ""
    source: str = "registry"


class PackageManagerClient(Protocol):
    """Host package manager consumed by the reconciler.

    A side of ``add_and_remove`` with nothing to change is passed as ``None``,
    never as an empty list.
    """

    def list_installed(self) -> Operation[List[PackageInfo]]: ...

    def add_and_remove(self, to_add: Optional[List[str]], to_remove: Optional[List[str]]) -> Operation[None]: ...

"""Package catalog, package manager clients and the reconciliation session."""

from .catalog import CatalogClient, PackageCatalog, gist_raw_url
from .client import PackageInfo, PackageManagerClient
from .loop import TickLoop, is_ready, wait_ready
from .manifest import ManifestPackageManager, RegistryClient, split_identifier
from .operations import CompletedOperation, FailedOperation, FutureOperation, Operation, OperationError
from .reconciler import CommitPlan, PackageReconciler, ReconcilerState

__all__ = [
    "CatalogClient",
    "PackageCatalog",
    "gist_raw_url",
    "PackageInfo",
    "PackageManagerClient",
    "TickLoop",
    "is_ready",
    "wait_ready",
    "ManifestPackageManager",
    "RegistryClient",
    "split_identifier",
    "CompletedOperation",
    "FailedOperation",
    "FutureOperation",
    "Operation",
    "OperationError",
    "CommitPlan",
    "PackageReconciler",
    "ReconcilerState",
]

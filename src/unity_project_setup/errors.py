from __future__ import annotations


class SetupError(Exception):
    """Base class for errors raised by the project setup tools."""


class CatalogError(SetupError):
    """The package catalog could not be fetched or decoded."""


class PackageManagerError(SetupError):
    """A package manager operation failed."""


class ReconcilerStateError(SetupError):
    """An operation was called in a state that does not allow it."""


class ReconcilerClosedError(ReconcilerStateError):
    """The reconciler session has been closed and cannot be reused."""

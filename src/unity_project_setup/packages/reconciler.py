"""Package reconciliation session.

A ``PackageReconciler`` diffs the curated catalog against the installed
packages and applies a user-approved batch of additions and removals as a
single request. It is driven by ``tick()`` from a cooperative loop and never
blocks on the operations it polls.

States::

    IDLE -> LISTING -> READY -> COMMITTING -> LISTING -> ...
    any state -> CLOSED (close(), list failure, catalog failure, timeout)
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..errors import ReconcilerClosedError, ReconcilerStateError
from .client import PackageInfo, PackageManagerClient
from .operations import Operation


logger = logging.getLogger(__name__)

LIST_FAILURE_FALLBACK = "Something went wrong. Please reopen the window."
COMMIT_FAILURE_FALLBACK = "Package update failed."
COMMIT_SUCCESS_MESSAGE = "Packages updated successfully."
LISTING_TIMEOUT_MESSAGE = "Timed out waiting for package list and catalog."
COMMIT_TIMEOUT_MESSAGE = "Package changes are taking longer than expected; still waiting for them to finish."

FETCHING_LABEL = "Fetching packages..."
UPDATING_LABEL = "Updating packages..."


class ReconcilerState(str, enum.Enum):
    IDLE = "idle"
    LISTING = "listing"
    READY = "ready"
    COMMITTING = "committing"
    CLOSED = "closed"


@dataclass(frozen=True)
class CommitPlan:
    to_add: List[str]
    to_remove: List[str]


class PackageReconciler:
    def __init__(
        self,
        client: PackageManagerClient,
        catalog_source: Callable[[], Operation[List[str]]],
        *,
        listing_timeout: float = 120.0,
        commit_timeout: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.catalog_source = catalog_source
        self.listing_timeout = listing_timeout
        self.commit_timeout = commit_timeout
        self._clock = clock

        self._state = ReconcilerState.IDLE
        self._phase_started = 0.0

        self._catalog: List[str] = []
        self._catalog_loaded = False
        self._catalog_op: Optional[Operation[List[str]]] = None

        self._list_op: Optional[Operation[List[PackageInfo]]] = None
        self._commit_op: Optional[Operation[None]] = None
        self._installed_populated = False
        self.last_commit_ok: Optional[bool] = None
        self._commit_overdue = False

        # Insertion order doubles as display order
        self._installed: Dict[str, bool] = {}
        self._available: Dict[str, bool] = {}

    # ------------------------------ Observers ------------------------------

    @property
    def state(self) -> ReconcilerState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is ReconcilerState.CLOSED

    @property
    def installed(self) -> Dict[str, bool]:
        return dict(self._installed)

    @property
    def available(self) -> Dict[str, bool]:
        return dict(self._available)

    @property
    def catalog(self) -> List[str]:
        return list(self._catalog)

    @property
    def status_label(self) -> Optional[str]:
        if self._state is ReconcilerState.COMMITTING:
            return UPDATING_LABEL
        if self._state is ReconcilerState.LISTING:
            return FETCHING_LABEL
        return None

    # ------------------------------ Lifecycle ------------------------------

    def activate(self) -> None:
        """Start (or restart) a listing cycle.

        Does nothing while a list or commit request is in flight. Activating
        a ready session discards the current selection and lists again.
        """

        if self._state is ReconcilerState.CLOSED:
            raise ReconcilerClosedError("Package session is closed; start a new one.")
        if self._state in (ReconcilerState.LISTING, ReconcilerState.COMMITTING):
            logger.debug("Activation ignored while %s", self._state.value)
            return

        self._start_listing()
        if self._state is ReconcilerState.LISTING and not self._catalog_loaded and self._catalog_op is None:
            self._catalog_op = self.catalog_source()

    def close(self) -> None:
        """Tear the session down. Safe to call from any state, more than once."""

        if self._state is not ReconcilerState.CLOSED:
            logger.debug("Closing package session (was %s)", self._state.value)
        self._state = ReconcilerState.CLOSED
        self._list_op = None
        self._commit_op = None
        self._catalog_op = None
        self._catalog = []
        self._catalog_loaded = False
        self._clear_collections()

    def tick(self) -> None:
        """Advance the state machine by polling whatever is in flight."""

        if self._state is ReconcilerState.LISTING:
            self._poll_catalog()
            if self._state is ReconcilerState.LISTING:
                self._poll_list()
            if self._state is ReconcilerState.LISTING and self._expired(self.listing_timeout):
                logger.error(LISTING_TIMEOUT_MESSAGE)
                self.close()
        elif self._state is ReconcilerState.COMMITTING:
            self._poll_commit()
            # A late commit stays in flight until it resolves
            if self._state is ReconcilerState.COMMITTING and not self._commit_overdue and self._expired(self.commit_timeout):
                logger.warning(COMMIT_TIMEOUT_MESSAGE)
                self._commit_overdue = True

    # ------------------------------ Selection ------------------------------

    def set_installed(self, name: str, keep: bool) -> None:
        """Mark an installed package to keep (True) or remove (False)."""

        self._require_ready()
        if name not in self._installed:
            raise KeyError(name)
        self._installed[name] = bool(keep)

    def set_available(self, name: str, selected: bool) -> None:
        """Mark an available package to add (True) or skip (False)."""

        self._require_ready()
        if name not in self._available:
            raise KeyError(name)
        self._available[name] = bool(selected)

    def toggle_installed(self, name: str) -> bool:
        self._require_ready()
        self.set_installed(name, not self._installed.get(name, True))
        return self._installed[name]

    def toggle_available(self, name: str) -> bool:
        self._require_ready()
        self.set_available(name, not self._available.get(name, False))
        return self._available[name]

    def pending_plan(self) -> CommitPlan:
        return CommitPlan(
            to_add=[name for name, selected in self._available.items() if selected],
            to_remove=[name for name, keep in self._installed.items() if not keep],
        )

    def commit(self) -> Optional[CommitPlan]:
        """Send the selected additions and removals as one request.

        Returns:
            Optional[CommitPlan]: The submitted plan, or None when nothing is
            selected (the session stays ready and no request is made).
        """

        self._require_ready()
        plan = self.pending_plan()
        if not plan.to_add and not plan.to_remove:
            return None

        self._clear_collections()
        self._list_op = None
        try:
            self._commit_op = self.client.add_and_remove(plan.to_add or None, plan.to_remove or None)
        except Exception:
            logger.exception("Could not start package changes")
            self.last_commit_ok = False
            self._start_listing()
            return plan

        logger.info("Requested package changes: %d to add, %d to remove", len(plan.to_add), len(plan.to_remove))
        self._state = ReconcilerState.COMMITTING
        self._phase_started = self._clock()
        self._commit_overdue = False
        return plan

    # ------------------------------ Internals ------------------------------

    def _require_ready(self) -> None:
        if self._state is ReconcilerState.CLOSED:
            raise ReconcilerClosedError("Package session is closed; start a new one.")
        if self._state is not ReconcilerState.READY:
            raise ReconcilerStateError(f"Packages are not ready yet ({self._state.value})")

    def _expired(self, timeout: float) -> bool:
        return (self._clock() - self._phase_started) > timeout

    def _clear_collections(self) -> None:
        self._installed.clear()
        self._available.clear()
        self._installed_populated = False

    def _start_listing(self) -> None:
        self._clear_collections()
        self._state = ReconcilerState.LISTING
        self._phase_started = self._clock()
        try:
            self._list_op = self.client.list_installed()
        except Exception:
            logger.exception("Could not request installed packages")
            self.close()

    def _poll_catalog(self) -> None:
        op = self._catalog_op
        if op is None or not op.is_complete:
            return
        self._catalog_op = None
        if not op.succeeded:
            err = op.error
            detail = err.message if err is not None and err.message else "unknown error"
            logger.error("Failed to fetch package catalog: %s", detail)
            self.close()
            return
        self._catalog = list(op.result)
        self._catalog_loaded = True

    def _poll_list(self) -> None:
        op = self._list_op
        if op is None or not op.is_complete:
            return

        if not op.succeeded:
            err = op.error
            message = err.message if err is not None and err.message else LIST_FAILURE_FALLBACK
            logger.error(message)
            self._list_op = None
            self.close()
            return

        if not self._installed_populated:
            for package in op.result:
                self._installed[package.name] = True
            self._installed_populated = True

        if self._catalog_loaded:
            for name in self._catalog:
                if name not in self._installed:
                    self._available.setdefault(name, False)
            self._list_op = None
            self._state = ReconcilerState.READY
            logger.debug("%d installed, %d available", len(self._installed), len(self._available))

    def _poll_commit(self) -> None:
        op = self._commit_op
        if op is None or not op.is_complete:
            return
        self.last_commit_ok = op.succeeded
        if op.succeeded:
            logger.info(COMMIT_SUCCESS_MESSAGE)
        else:
            err = op.error
            logger.error(err.message if err is not None and err.message else COMMIT_FAILURE_FALLBACK)
        self._commit_op = None
        self._start_listing()

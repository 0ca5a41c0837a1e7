from types import SimpleNamespace
from typing import Any, List, Optional

import pytest

from unity_project_setup.config_manager import ConfigManager
from unity_project_setup.packages import OperationError, PackageInfo, PackageReconciler


ENV_VARS = [
    "UPS_CONFIG_FILE",
    "CATALOG_URL",
    "CATALOG_TIMEOUT",
    "REGISTRY_URL",
    "TICK_INTERVAL",
    "LISTING_TIMEOUT",
    "COMMIT_TIMEOUT",
    "LOG_LEVEL",
    "LOG_FILE",
]


class ManualOperation:
    """Operation resolved by the test instead of by a worker thread."""

    def __init__(self):
        self.is_complete = False
        self.succeeded = False
        self.error: Optional[OperationError] = None
        self._result: Any = None

    @property
    def result(self):
        if not self.succeeded:
            raise RuntimeError("Operation has no result")
        return self._result

    def resolve(self, value: Any = None) -> None:
        self.is_complete = True
        self.succeeded = True
        self._result = value

    def fail(self, message: Optional[str] = None) -> None:
        self.is_complete = True
        self.succeeded = False
        self.error = OperationError(message=message)


class FakePackageManager:
    def __init__(self):
        self.list_ops: List[ManualOperation] = []
        self.commit_ops: List[ManualOperation] = []
        self.commit_calls: List[tuple] = []
        self.raise_on_commit: Optional[Exception] = None

    def list_installed(self) -> ManualOperation:
        op = ManualOperation()
        self.list_ops.append(op)
        return op

    def add_and_remove(self, to_add, to_remove) -> ManualOperation:
        self.commit_calls.append((to_add, to_remove))
        if self.raise_on_commit is not None:
            raise self.raise_on_commit
        op = ManualOperation()
        self.commit_ops.append(op)
        return op


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def installed(*names: str) -> List[PackageInfo]:
    return [PackageInfo(name=n, version="1.0.0") for n in names]


@pytest.fixture(autouse=True)
def clean_config(monkeypatch, tmp_path):
    """Isolate every test from the developer's environment and config file."""

    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("UPS_CONFIG_FILE", str(tmp_path / "no-settings.yaml"))
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "test.log"))
    ConfigManager._instance = None
    yield
    ConfigManager._instance = None


@pytest.fixture
def session():
    """A reconciler wired to a fake package manager, catalog and clock."""

    pm = FakePackageManager()
    catalog_ops: List[ManualOperation] = []

    def catalog_source() -> ManualOperation:
        op = ManualOperation()
        catalog_ops.append(op)
        return op

    clock = FakeClock()
    reconciler = PackageReconciler(pm, catalog_source, listing_timeout=10.0, commit_timeout=20.0, clock=clock)
    return SimpleNamespace(reconciler=reconciler, pm=pm, catalog_ops=catalog_ops, clock=clock)


@pytest.fixture
def ready_session(session):
    """Session in READY with catalog a, b, c and package b installed."""

    r = session.reconciler
    r.activate()
    session.catalog_ops[0].resolve(["a", "b", "c"])
    session.pm.list_ops[0].resolve(installed("b"))
    r.tick()
    return session

from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import Executor, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional

from .config_manager import ConfigManager, Settings
from .errors import SetupError
from .logging_system import LogManager, ROOT_LOGGER
from .packages import (
    CatalogClient,
    ManifestPackageManager,
    PackageReconciler,
    ReconcilerState,
    RegistryClient,
    TickLoop,
    is_ready,
)
from .scaffolding import FolderScaffolder
from .view import name_at, parse_selection, render


logger = logging.getLogger(__name__)


def build_session(project: str | Path, settings: Settings, executor: Executor) -> PackageReconciler:
    """Wire a reconciler to the project's manifest and the configured catalog."""

    client = ManifestPackageManager(
        project,
        RegistryClient(settings.registry.url, timeout=settings.registry.timeout),
        executor,
    )
    catalog = CatalogClient(settings.catalog_url(), timeout=settings.catalog.timeout)
    return PackageReconciler(
        client,
        lambda: catalog.fetch_async(executor),
        listing_timeout=settings.reconciler.listing_timeout,
        commit_timeout=settings.reconciler.commit_timeout,
    )


# ------------------------------ Commands ------------------------------


def cmd_folders(args: argparse.Namespace, settings: Settings, log: LogManager) -> int:
    scaffolder = FolderScaffolder.from_entries(settings.folders)
    with log.operation("create-default-folders", extra={"project": str(args.project)}):
        created = scaffolder.create_default_folders(args.project)
    for path in created:
        print(f"created {path}")
    if not created:
        print("All folders already exist.")
    return 0


def run_batch(reconciler: PackageReconciler, loop: TickLoop, add: List[str], remove: List[str], show: bool) -> int:
    reconciler.activate()
    if not is_ready_state(loop.run_sync(reconciler, is_ready)):
        return 1

    if show:
        print(render(reconciler))

    try:
        for name in remove:
            reconciler.set_installed(name, False)
        for name in add:
            reconciler.set_available(name, True)
    except KeyError as e:
        logger.error("Unknown package %s: not installed and not in the catalog (or already installed)", e)
        return 2

    if not add and not remove:
        return 0
    if reconciler.commit() is None:
        print("Nothing to change.")
        return 0
    if not is_ready_state(loop.run_sync(reconciler, is_ready)):
        return 1
    return 0 if reconciler.last_commit_ok else 1


def run_interactive(
    reconciler: PackageReconciler,
    loop: TickLoop,
    read: Callable[[str], str] = input,
) -> int:
    reconciler.activate()
    while True:
        if reconciler.status_label:
            print(reconciler.status_label)
        if not is_ready_state(loop.run_sync(reconciler, is_ready)):
            return 1
        print(render(reconciler))
        try:
            line = read("> ")
        except EOFError:
            return 0
        if not line.strip():
            continue
        try:
            command = parse_selection(line)
            if command.action == "quit":
                return 0
            if command.action == "commit":
                if reconciler.commit() is None:
                    print("Nothing selected.")
                continue
            entries = reconciler.installed if command.action == "remove" else reconciler.available
            for index in command.indices:
                name = name_at(entries, index)
                if command.action == "remove":
                    reconciler.toggle_installed(name)
                else:
                    reconciler.toggle_available(name)
        except (ValueError, IndexError) as e:
            print(f"error: {e}")


def is_ready_state(state: ReconcilerState) -> bool:
    return state is ReconcilerState.READY


def cmd_packages(args: argparse.Namespace, settings: Settings, log: LogManager) -> int:
    project = Path(args.project)
    loop = TickLoop(settings.reconciler.tick_interval)
    executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="packages")
    reconciler = build_session(project, settings, executor)
    try:
        if args.add or args.remove or args.list:
            return run_batch(reconciler, loop, args.add, args.remove, args.list)
        return run_interactive(reconciler, loop)
    finally:
        reconciler.close()
        executor.shutdown(wait=False, cancel_futures=True)


# ------------------------------ Entry point ------------------------------


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="unity-project-setup", description="Unity project setup tools")
    ap.add_argument("--config", dest="config", default=None, help="Path to a settings YAML file")
    ap.add_argument("--log-level", dest="log_level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = ap.add_subparsers(dest="command", required=True)

    folders = sub.add_parser("folders", help="Create the default folder layout (never removes folders)")
    folders.add_argument("project", help="Unity project root or its Assets directory")
    folders.set_defaults(handler=cmd_folders)

    packages = sub.add_parser("packages", help="Add/remove several packages at once")
    packages.add_argument("project", help="Unity project root (holding Packages/manifest.json)")
    packages.add_argument("--add", action="append", default=[], metavar="NAME", help="Catalog package to add (repeatable)")
    packages.add_argument("--remove", action="append", default=[], metavar="NAME", help="Installed package to remove (repeatable)")
    packages.add_argument("--list", action="store_true", help="Print installed and available packages")
    packages.set_defaults(handler=cmd_packages)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = ConfigManager().use_config_file(args.config)
    log: Optional[LogManager] = None
    try:
        log = LogManager(
            ROOT_LOGGER,
            level=args.log_level or settings.logging.level,
            log_file=settings.logging.file,
            console_format="text",
        )
        return args.handler(args, settings, log)
    except (SetupError, OSError) as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return 130
    finally:
        if log is not None:
            log.shutdown()


if __name__ == "__main__":
    sys.exit(main())

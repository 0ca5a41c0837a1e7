"""Text rendering of the package window and parsing of its commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .packages.reconciler import PackageReconciler, ReconcilerState


UPDATING_NOTICE = (
    "This might take a while to get started. Please don't add/remove packages "
    "from the Package Manager manually until this operation is finished."
)
REMOVE_HEADER = "Select packages you wish to remove:"
ADD_HEADER = "Select packages you wish to add:"
COMMANDS_HELP = "Commands: r <n...> toggle removal, a <n...> toggle addition, c finalize, q quit"

ACTIONS = {"r": "remove", "a": "add", "c": "commit", "q": "quit"}


@dataclass
class Command:
    action: str
    indices: List[int] = field(default_factory=list)


def _checklist(entries: Dict[str, bool]) -> List[str]:
    if not entries:
        return ["  (none)"]
    return [f"  {i:>3}. [{'x' if flag else ' '}] {name}" for i, (name, flag) in enumerate(entries.items(), start=1)]


def render(reconciler: PackageReconciler) -> str:
    state = reconciler.state
    if state is ReconcilerState.COMMITTING:
        return "\n".join([reconciler.status_label or "", UPDATING_NOTICE])
    if state is ReconcilerState.CLOSED:
        return "Package session closed."
    if state is not ReconcilerState.READY:
        return reconciler.status_label or ""

    lines = [REMOVE_HEADER]
    lines += _checklist(reconciler.installed)
    lines += ["", ADD_HEADER]
    lines += _checklist(reconciler.available)
    lines += ["", "Finalize selected package removal and addition with 'c'.", COMMANDS_HELP]
    return "\n".join(lines)


def parse_selection(text: str) -> Command:
    """Parse one interactive command line, e.g. ``r 3``, ``a 1 2``, ``c``.

    Raises:
        ValueError: Unknown command or a non-numeric / non-positive index.
    """

    parts = text.split()
    if not parts:
        raise ValueError("Empty command")
    action = ACTIONS.get(parts[0].lower())
    if action is None:
        raise ValueError(f"Unknown command: {parts[0]!r}")

    indices: List[int] = []
    for token in parts[1:]:
        if not token.isdigit() or int(token) < 1:
            raise ValueError(f"Invalid item number: {token!r}")
        indices.append(int(token))

    if action in ("remove", "add") and not indices:
        raise ValueError(f"'{parts[0]}' needs at least one item number")
    if action in ("commit", "quit") and indices:
        raise ValueError(f"'{parts[0]}' takes no item numbers")
    return Command(action=action, indices=indices)


def name_at(entries: Dict[str, bool], index: int) -> str:
    """Return the package shown at 1-based ``index`` of a checklist."""

    names = list(entries)
    if not 1 <= index <= len(names):
        raise IndexError(f"No item {index} (list has {len(names)})")
    return names[index - 1]

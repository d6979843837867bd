"""Graph algorithms over store entries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from storegraph._errors import CycleError, InvariantViolation

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from storegraph._entry import StoreEntry
    from storegraph._name import StoreName

logger = logging.getLogger(__name__)


def _get[V](entries: Mapping[StoreName, V], name: StoreName) -> V:
    try:
        return entries[name]
    except KeyError:
        msg = f"Invariant violation: store name not found: {name.to_text()}"
        raise InvariantViolation(msg) from None


def reachable[P](
    entries: Mapping[StoreName, StoreEntry[StoreName, P]],
    predicate: Callable[[StoreEntry[StoreName, P]], bool],
    starts: Iterable[StoreName],
) -> list[StoreEntry[StoreName, P]]:
    """Collect the entries reachable from `starts` that satisfy `predicate`.

    An entry rejected by `predicate` is left out and the search does not
    continue through it. The search is depth-first, and every name is
    emitted at most once however many paths lead to it.

    Returns:
        The accepted entries in discovery order.

    """
    visited: set[StoreName] = set()
    result: list[StoreEntry[StoreName, P]] = []
    stack = list(starts)
    stack.reverse()
    while stack:
        name = stack.pop()
        if name in visited:
            continue
        entry = _get(entries, name)
        if not predicate(entry):
            continue
        visited.add(name)
        result.append(entry)
        stack.extend(ref for ref in reversed(entry.refs) if ref not in visited)
    return result


def fold_postorder[A, B](
    entries: Mapping[StoreName, StoreEntry[StoreName, A]],
    roots: Iterable[StoreName],
    f: Callable[[StoreEntry[StoreEntry[StoreName, B], A]], B],
) -> dict[StoreName, StoreEntry[StoreName, B]]:
    """Replace every payload reachable from `roots` with `f` of its entry.

    `f` receives the original entry with its refs swapped for the already
    folded entries they name, and is called exactly once per name, children
    first in ref order.

    Returns:
        The folded entries keyed by name, in the order `f` was called.

    Raises:
        CycleError: If an entry depends on itself through its refs.
        InvariantViolation: If a ref names no entry.

    """
    pending = dict(entries)
    done: dict[StoreName, StoreEntry[StoreName, B]] = {}
    # Names whose children are being folded; meeting one again means a cycle.
    in_progress: dict[StoreName, None] = {}

    for root in roots:
        stack: list[tuple[StoreName, bool]] = [(root, False)]
        while stack:
            name, expanded = stack.pop()
            if name in done:
                continue

            if expanded:
                entry = _get(pending, name)
                folded_refs = tuple(done[ref] for ref in entry.refs)
                payload = f(entry.with_refs(folded_refs))
                done[name] = entry.with_payload(payload)
                del pending[name]
                del in_progress[name]
                continue

            entry = _get(pending, name)
            in_progress[name] = None
            stack.append((name, True))
            for ref in reversed(entry.refs):
                if ref in done:
                    continue
                if ref in in_progress:
                    cycle = list(in_progress)
                    raise CycleError([*cycle[cycle.index(ref) :], ref])
                stack.append((ref, False))

    logger.debug("Folded %d entries", len(done))
    return done

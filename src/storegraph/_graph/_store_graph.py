"""Immutable store dependency graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from storegraph._errors import IncompleteClosureError, InvariantViolation, ScopeError
from storegraph._name import GraphScope

from ._algorithms import fold_postorder, reachable

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from storegraph._entry import StoreEntry
    from storegraph._name import StoreName

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StoreGraph[P]:
    """The closure of a set of root entries, keyed by name.

    The graph is total: every root and every ref is a key of the graph.
    It is generic over the payload type `P` carried by its entries.

    Names handed out by a graph are bound to its scope. A graph and the
    graphs obtained from it by `transform` share that scope; names bound to
    another scope are rejected.

    Attributes:
        _entries: Mapping from name to entry.
        _roots: Declared roots, in declaration order.
        _scope: Scope the graph and its names belong to.

    """

    _entries: Mapping[StoreName, StoreEntry[StoreName, P]]
    _roots: tuple[StoreName, ...]
    _scope: GraphScope

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[StoreEntry[StoreName, P]],
        roots: Iterable[StoreName],
        scope: GraphScope | None = None,
    ) -> StoreGraph[P]:
        """Build a graph from entries and root names.

        Every name is bound to `scope` (a fresh one by default). Later
        entries replace earlier entries of the same name.

        Raises:
            ValueError: If `roots` is empty.
            IncompleteClosureError: If a root or ref has no entry.

        """
        if scope is None:
            scope = GraphScope()

        bound: dict[StoreName, StoreEntry[StoreName, P]] = {}
        for entry in entries:
            name = entry.name.bind(scope)
            refs = tuple(ref.bind(scope) for ref in entry.refs if ref != name)
            bound[name] = replace(entry, name=name, refs=refs)

        root_names = tuple(root.bind(scope) for root in roots)
        if not root_names:
            msg = "A store graph needs at least one root"
            raise ValueError(msg)

        missing = dict.fromkeys(root for root in root_names if root not in bound)
        for entry in bound.values():
            missing.update(dict.fromkeys(ref for ref in entry.refs if ref not in bound))
        if missing:
            raise IncompleteClosureError(list(missing))

        logger.debug("Assembled store graph with %d entries and %d roots", len(bound), len(root_names))
        return cls(_entries=MappingProxyType(bound), _roots=root_names, _scope=scope)

    @property
    def scope(self) -> GraphScope:
        return self._scope

    @property
    def names(self) -> frozenset[StoreName]:
        """All names in the graph."""
        self._scope.check_open()
        return frozenset(self._entries)

    @property
    def root_names(self) -> tuple[StoreName, ...]:
        """Declared root names, in declaration order."""
        self._scope.check_open()
        return self._roots

    def _check_name(self, name: StoreName) -> None:
        self._scope.check_open()
        if name.scope is not None and name.scope is not self._scope:
            msg = f"Store name '{name.to_text()}' belongs to {name.scope!r}, not to this graph's {self._scope!r}"
            raise ScopeError(msg)

    def lookup(self, name: StoreName) -> StoreEntry[StoreName, P]:
        """Get the entry of a name that originated from this graph.

        Raises:
            ScopeError: If the name belongs to another graph, or the scope is closed.
            InvariantViolation: If the name is not in the graph.

        """
        self._check_name(name)
        try:
            return self._entries[name]
        except KeyError:
            msg = f"Invariant violation, store name not found: {name.to_text()}"
            raise InvariantViolation(msg) from None

    def roots(self) -> tuple[StoreEntry[StoreName, P], ...]:
        """Get the entries of the declared roots, in declaration order.

        A root declared twice appears twice.
        """
        return tuple(self.lookup(name) for name in self.root_names)

    def fetch_refs(
        self,
        predicate: Callable[[StoreEntry[StoreName, P]], bool],
        names: Iterable[StoreName],
    ) -> list[StoreEntry[StoreName, P]]:
        """Get the entries reachable from `names` that satisfy `predicate`.

        `predicate` also prunes the search: the refs of a rejected entry are
        not followed through it. Each entry appears once; the order is
        unspecified.

        Args:
            predicate: Filter applied to every entry met.
            names: Names to start from.

        Returns:
            The matching entries.

        """
        starts = list(names)
        for name in starts:
            self._check_name(name)
        return reachable(self._entries, predicate, starts)

    def transform[B](self, f: Callable[[StoreEntry[StoreEntry[StoreName, B], P]], B]) -> StoreGraph[B]:
        """Fold the graph bottom-up into a graph with new payloads.

        `f` is called once per entry, after it has been called for every
        entry that one refers to. It receives the entry with its original
        size and payload and with refs replaced by the folded entries.

        Args:
            f: Computes the new payload of an entry.

        Returns:
            A new graph with the same names and roots in the same scope.

        Raises:
            CycleError: If the graph is not acyclic.

        """
        self._scope.check_open()
        # Roots first, then anything not reachable from them, so no name is lost.
        done = fold_postorder(self._entries, [*self._roots, *self._entries], f)
        return StoreGraph(_entries=MappingProxyType(done), _roots=self._roots, _scope=self._scope)

    def topological_order(self) -> list[StoreName]:
        """Return all names with every entry after the entries it refers to.

        This is the order in which `transform` calls its function.

        Raises:
            CycleError: If the graph is not acyclic.

        """
        self._scope.check_open()
        return list(fold_postorder(self._entries, [*self._roots, *self._entries], lambda entry: None))

    def __len__(self) -> int:
        """Return the number of entries in the graph."""
        self._scope.check_open()
        return len(self._entries)

    def __contains__(self, name: Any) -> bool:
        """Check if a name is in the graph."""
        self._scope.check_open()
        return name in self._entries

"""Exception hierarchy for storegraph."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._name import StoreName


class StoreGraphError(Exception):
    """Base class for all storegraph errors."""


class InputParseError(StoreGraphError):
    """Raised when root paths given by the caller are not store paths.

    All offending inputs are reported at once, before any query is issued.
    """

    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = list(paths)
        super().__init__(f"Not a store path: {', '.join(repr(p) for p in self.paths)}")


class StoreQueryError(StoreGraphError):
    """Base class for failures while querying the store for a closure."""


class QueryDecodeError(StoreQueryError):
    """Raised when the query output does not have the expected structure."""


class QueryExecutionError(StoreQueryError):
    """Raised when the query command could not be run or exited with an error."""

    def __init__(self, command: Sequence[str], stderr: str = "") -> None:
        self.command = list(command)
        self.stderr = stderr
        msg = f"Store query failed: {' '.join(self.command)}"
        if stderr:
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)


class InvalidEntryError(StoreQueryError):
    """Raised when the store reports an entry of the closure as invalid."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Invalid path: {path}. Inconsistent store or ongoing garbage collection.")


class InternalNameParseError(StoreQueryError):
    """Raised when paths returned by the query fail to parse as store names."""

    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = list(paths)
        super().__init__(f"Failed parsing store paths from query output: {self.paths}")


class IncompleteClosureError(StoreQueryError):
    """Raised when a referenced or requested name has no record in the query output."""

    def __init__(self, names: Sequence[StoreName]) -> None:
        self.names = list(names)
        super().__init__(f"Query output is missing records for: {[n.to_text() for n in self.names]}")


class InvariantViolation(StoreGraphError, RuntimeError):  # noqa: N818
    """Raised on programming errors that break the graph invariants.

    These are not meant to be caught and recovered from.
    """


class ScopeError(InvariantViolation):
    """Raised when a name or graph is used outside the scope it belongs to."""


class CycleError(InvariantViolation):
    """Raised when a traversal that requires a DAG meets a cycle."""

    def __init__(self, cycle: Sequence[StoreName]) -> None:
        self.cycle = list(cycle)
        path = " -> ".join(n.to_text() for n in self.cycle)
        super().__init__(f"Cycle detected in store graph: {path}")


class ConfigError(StoreGraphError):
    """Error in storegraph configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import PurePosixPath
from typing import Self

from ._errors import ScopeError

DEFAULT_STORE_DIR = "/nix/store"


def _is_entry_name(text: str) -> bool:
    return bool(text) and "/" not in text and text not in {".", ".."}


class GraphScope:
    """Token shared by a graph and every graph folded from it.

    Names bound to a scope are only valid against graphs of the same scope,
    and only while the scope is open.
    """

    __slots__ = ("_label", "_open")

    def __init__(self, label: str = "") -> None:
        self._label = label
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        self._open = False

    def check_open(self) -> None:
        if not self._open:
            msg = f"Graph scope {self!r} is closed; values from it cannot be used after the callback returned"
            raise ScopeError(msg)

    def __repr__(self) -> str:
        state = "open" if self._open else "closed"
        return f"<GraphScope {self._label or hex(id(self))} ({state})>"


@dataclass(frozen=True, slots=True)
class StoreName:
    """Canonical name of one store entry, e.g. ``abc123-hello-2.12``.

    Equality and hashing use the entry-name text only. Instances come from
    `parse_store_name`; graphs bind the names they hand out to their scope.
    Calling the constructor directly is internal and meant for tests; it
    still only accepts a single path segment.

    Raises:
        ValueError: If `text` is not a valid entry name.

    """

    text: str
    store_dir: str = field(default=DEFAULT_STORE_DIR, compare=False, repr=False)
    scope: GraphScope | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not _is_entry_name(self.text):
            msg = f"Invalid store entry name: {self.text!r}"
            raise ValueError(msg)

    def to_path(self) -> str:
        return f"{self.store_dir.rstrip('/')}/{self.text}"

    def to_text(self) -> str:
        return self.text

    def to_short_text(self) -> str:
        """Drop the leading hash and its separator, for display."""
        _, _, rest = self.text.partition("-")
        return rest

    def bind(self, scope: GraphScope) -> Self:
        """Return this name tagged with `scope`.

        Raises:
            ScopeError: If the name already belongs to another scope.

        """
        if self.scope is scope:
            return self
        if self.scope is not None:
            msg = f"Store name '{self.text}' belongs to {self.scope!r}, not {scope!r}"
            raise ScopeError(msg)
        return replace(self, scope=scope)

    def __str__(self) -> str:
        return self.text


def parse_store_name(path: str, store_dir: str = DEFAULT_STORE_DIR) -> StoreName | None:
    """Parse an absolute store path into a `StoreName`.

    The path must start with the segments of `store_dir` followed by an entry
    name; segments after the entry name are ignored.

    Returns:
        The parsed name, or None if `path` does not point into the store.

    Example:
        >>> parse_store_name("/nix/store/abc-hello/bin/hello")
        StoreName(text='abc-hello')

    """
    prefix = PurePosixPath(store_dir).parts
    parts = PurePosixPath(path).parts
    if not prefix or prefix[0] != "/":
        return None
    if len(parts) <= len(prefix) or parts[: len(prefix)] != prefix:
        return None
    if not _is_entry_name(parts[len(prefix)]):
        return None
    return StoreName(text=parts[len(prefix)], store_dir=store_dir)

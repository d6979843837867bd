from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ._name import StoreName


@dataclass(frozen=True, slots=True)
class StoreEntry[R, P]:
    """One entry of the store.

    `R` is the type of the references: `StoreName` in a graph, and the
    already-folded entries inside a `StoreGraph.transform` callback.
    `P` is the type of the caller-supplied payload.

    Attributes:
        name: Name of the entry.
        size: Size of the entry in bytes (NAR size for the Nix store).
        refs: Entries this one references, never including itself.
        payload: Opaque per-entry value.

    """

    name: StoreName
    size: int
    refs: tuple[R, ...]
    payload: P

    def with_refs[R2](self, refs: tuple[R2, ...]) -> StoreEntry[R2, P]:
        return replace(self, refs=refs)  # type: ignore[return-value]

    def with_payload[P2](self, payload: P2) -> StoreEntry[R, P2]:
        return replace(self, payload=payload)  # type: ignore[return-value]


def make_entry(
    name: StoreName,
    size: int,
    refs: tuple[StoreName, ...],
    payload: Any = None,
) -> StoreEntry[StoreName, Any]:
    """Build an entry, dropping references to itself."""
    kept = tuple(ref for ref in refs if ref != name)
    return StoreEntry(name=name, size=size, refs=kept, payload=payload)

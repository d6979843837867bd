"""Building a scoped store graph from root paths."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._config import StoreConfig, get_config
from ._entry import make_entry
from ._errors import InputParseError, InternalNameParseError, InvalidEntryError
from ._graph import StoreGraph
from ._name import GraphScope, parse_store_name
from ._query import InvalidPathInfo, NixPathInfoAdapter

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ._entry import StoreEntry
    from ._name import StoreName
    from ._query import QueryAdapter

logger = logging.getLogger(__name__)


def query_entries(
    adapter: QueryAdapter,
    names: Sequence[StoreName],
) -> list[StoreEntry[StoreName, None]]:
    """Fetch the entries of the closure of `names` with a single query.

    Raises:
        InvalidEntryError: If any record of the batch is invalid.
        InternalNameParseError: If any returned path fails to parse, listing all of them.

    """
    records = adapter.query([name.to_path() for name in names])
    logger.debug("Query for %d roots returned %d records", len(names), len(records))

    for record in records:
        if isinstance(record, InvalidPathInfo):
            raise InvalidEntryError(record.path)

    store_dir = names[0].store_dir
    unparsed: list[str] = []
    entries: list[StoreEntry[StoreName, None]] = []
    for record in records:
        name = parse_store_name(record.path, store_dir)
        refs: list[StoreName] = []
        for ref_path in record.references:
            ref = parse_store_name(ref_path, store_dir)
            if ref is None:
                unparsed.append(ref_path)
            else:
                refs.append(ref)
        if name is None:
            unparsed.append(record.path)
            continue
        entries.append(make_entry(name, record.nar_size, tuple(refs)))

    if unparsed:
        raise InternalNameParseError(list(dict.fromkeys(unparsed)))

    return entries


def with_store_graph[T](
    root_paths: Sequence[str],
    callback: Callable[[StoreGraph[None]], T],
    *,
    adapter: QueryAdapter | None = None,
    config: StoreConfig | None = None,
) -> T:
    """Build the graph of the closure of `root_paths` and pass it to `callback`.

    All root paths are parsed before the store is queried; the graph and the
    names it hands out are only valid until `callback` returns.

    Args:
        root_paths: Absolute store paths, in the order the roots are declared.
        callback: Receives the graph; its result is returned.
        adapter: Query adapter. Defaults to running ``nix path-info``.
        config: Store configuration. Defaults to `get_config()`.

    Returns:
        Whatever `callback` returns.

    Raises:
        ValueError: If `root_paths` is empty.
        InputParseError: If any root path is not a store path, listing all of them.
        StoreQueryError: If querying the store fails. `callback` is not called.

    """
    if not root_paths:
        msg = "At least one root path is required"
        raise ValueError(msg)

    if config is None:
        config = get_config() if adapter is None else StoreConfig()
    store_dir = config.store_dir

    parsed = [(path, parse_store_name(path, store_dir)) for path in root_paths]
    failed = [path for path, name in parsed if name is None]
    if failed:
        raise InputParseError(failed)
    names = [name for _, name in parsed if name is not None]

    if adapter is None:
        adapter = NixPathInfoAdapter(nix=config.nix, extra_args=config.extra_args)

    entries = query_entries(adapter, names)
    scope = GraphScope(label=names[0].to_short_text())
    graph = StoreGraph.from_entries(entries, names, scope=scope)
    try:
        return callback(graph)
    finally:
        scope.close()

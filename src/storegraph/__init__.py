"""Dependency graphs over a content-addressed package store."""

__all__ = [
    "DEFAULT_STORE_DIR",
    "ConfigError",
    "CycleError",
    "GraphScope",
    "IncompleteClosureError",
    "InputParseError",
    "InternalNameParseError",
    "InvalidEntryError",
    "InvalidPathInfo",
    "InvariantViolation",
    "NixPathInfoAdapter",
    "PathInfo",
    "PathInfoRecord",
    "QueryAdapter",
    "QueryDecodeError",
    "QueryExecutionError",
    "ScopeError",
    "StaticQueryAdapter",
    "StoreConfig",
    "StoreEntry",
    "StoreGraph",
    "StoreGraphError",
    "StoreName",
    "StoreQueryError",
    "decode_path_info",
    "dump_path_info",
    "get_config",
    "load_config",
    "make_entry",
    "parse_store_name",
    "query_entries",
    "with_store_graph",
]

from ._config import StoreConfig, get_config, load_config
from ._entry import StoreEntry, make_entry
from ._env import query_entries, with_store_graph
from ._errors import (
    ConfigError,
    CycleError,
    IncompleteClosureError,
    InputParseError,
    InternalNameParseError,
    InvalidEntryError,
    InvariantViolation,
    QueryDecodeError,
    QueryExecutionError,
    ScopeError,
    StoreGraphError,
    StoreQueryError,
)
from ._graph import StoreGraph
from ._name import DEFAULT_STORE_DIR, GraphScope, StoreName, parse_store_name
from ._query import (
    InvalidPathInfo,
    NixPathInfoAdapter,
    PathInfo,
    PathInfoRecord,
    QueryAdapter,
    StaticQueryAdapter,
    decode_path_info,
    dump_path_info,
)

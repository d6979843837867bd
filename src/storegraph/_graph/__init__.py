"""Graph module providing the store dependency graph.

This module contains:
- StoreGraph[P]: An immutable, scoped graph of store entries
- Algorithms for closure traversal and bottom-up folding
"""

from ._algorithms import fold_postorder, reachable
from ._store_graph import StoreGraph

__all__ = ["StoreGraph", "fold_postorder", "reachable"]

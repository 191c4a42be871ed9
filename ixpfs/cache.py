"""Identity cache guaranteeing a single Node instance per canonical path.

The cache is unbounded; IXP namespaces are small and nodes are cheap proxies
rather than open handles.
"""

import re
import threading
from typing import TYPE_CHECKING, Dict, Optional

from .agent import Connection, default_connection

if TYPE_CHECKING:
    from .node import Node

_SEPARATOR_RUN = re.compile(r"/{2,}")


def canonicalize(path) -> str:
    """Collapse runs of '/' into one and drop a trailing '/'.

    '.' and '..' are left alone.
    """
    path = _SEPARATOR_RUN.sub("/", str(path))
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path


def dirname(path: str) -> str:
    """Directory part of a canonical path, following POSIX dirname rules"""
    if path == "/":
        return "/"
    head, sep, _ = path.rpartition("/")
    if not sep:
        return "."
    return head or "/"


class NodeCache:
    def __init__(self, connection: Optional[Connection] = None):
        self.connection = connection if connection is not None else default_connection()
        self._nodes: Dict[str, "Node"] = {}
        self._lock = threading.Lock()

    def lookup_or_create(self, path) -> "Node":
        """Return the node for ``path``, creating it on first lookup"""
        key = canonicalize(path)
        node = self._nodes.get(key)
        if node is not None:
            return node
        from .node import Node
        with self._lock:
            node = self._nodes.get(key)
            if node is None:
                node = self._nodes[key] = Node._bind(key, self)
            return node

    def child(self, node: "Node", sub_path) -> "Node":
        return self.lookup_or_create(f"{node.path}/{sub_path}")

    def parent(self, node: "Node") -> "Node":
        return self.lookup_or_create(dirname(node.path))

    def reset(self):
        """Forget every cached node"""
        with self._lock:
            self._nodes.clear()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, path) -> bool:
        return canonicalize(path) in self._nodes


_cache = NodeCache()


def default_cache() -> NodeCache:
    return _cache


def reset_default_cache():
    _cache.reset()

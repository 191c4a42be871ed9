"""File system abstractions over the 9P2000 protocol.

A ``Node`` is a path-addressed proxy for one entry in the IXP namespace. Nodes
are obtained from a ``NodeCache`` so that each canonical path maps to exactly
one instance::

    >>> Node("//a//b/") is Node("/a/b")
    True

Failures of ``entries``, ``read``, ``write``, ``create`` and ``remove`` are
logged and replaced with a fallback value; their ``try_*`` variants return an
``OpResult`` for callers that need to tell an empty result from a failed one.
"""

import codecs
import logging
from typing import Any, Callable, Iterator, List, Optional

from .cache import NodeCache, default_cache
from .error_handling import InvalidArgument, IXPError, OpResult, shielded

logger = logging.getLogger(__name__)


class Node:
    """An entry in the IXP file system"""

    def __new__(cls, path, cache: Optional[NodeCache] = None):
        if cache is None:
            cache = default_cache()
        return cache.lookup_or_create(path)

    @classmethod
    def _bind(cls, path: str, cache: NodeCache) -> "Node":
        # only NodeCache may create instances
        node = object.__new__(cls)
        node.path = path
        node._cache = cache
        node._children = {}
        return node

    @property
    def connection(self):
        return self._cache.connection

    def _shield(self, action: str, fallback, method: str, *args, **kwargs) -> OpResult:
        return shielded(
            action,
            fallback,
            lambda: self.connection.call(method, self.path, *args, **kwargs),
            address=self.connection.address,
        )

    def stat(self):
        """Return file statistics about this node"""
        return self.connection.call("stat", self.path)

    def exists(self) -> bool:
        """Test if this node exists on the IXP server"""
        try:
            self.stat()
        except IXPError:
            return False
        return True

    def is_directory(self) -> bool:
        return self.exists() and bool(self.stat().is_directory)

    def try_entries(self) -> OpResult:
        return self._shield("get entries", [], "entries")

    def entries(self) -> List[str]:
        """Return the names of all files in this directory"""
        return list(self.try_entries().value)

    def open(self, mode: str = "r", fn: Optional[Callable[[Any], Any]] = None):
        """Open this node for I/O access.

        Without ``fn`` a context manager yielding the locked handle is
        returned. With ``fn`` the handle is passed to it and its result
        returned once the handle is closed.
        """
        if fn is None:
            return self.connection.open(self.path, mode)
        with self.connection.open(self.path, mode) as handle:
            return fn(handle)

    def try_read(self, *args) -> OpResult:
        return self._shield("read from", None, "read", *args)

    def read(self, *args):
        """Return the entire content of this node"""
        return self.try_read(*args).value

    def lines(self) -> Iterator[str]:
        """Yield every line in the content of this node, line endings kept.

        A line split across two chunks of the stream is yielded whole.
        """
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        with self.open("r") as handle:
            while True:
                chunk = handle.read(True)
                if not chunk:
                    break
                if isinstance(chunk, bytes):
                    chunk = decoder.decode(chunk)
                *complete, pending = (pending + chunk).split("\n")
                for line in complete:
                    yield line + "\n"
        pending += decoder.decode(b"", final=True)
        if pending:
            yield pending

    def each_line(self, fn: Optional[Callable[[str], Any]] = None):
        """Invoke ``fn`` for every line in the content of this node"""
        if fn is None:
            raise InvalidArgument("each_line requires a callback", {"path": self.path})
        for line in self.lines():
            fn(line)

    def try_write(self, content) -> OpResult:
        return self._shield("write to", None, "write", content)

    def write(self, content):
        """Write the given content to this node"""
        return self.try_write(content).value

    def try_create(self, *args) -> OpResult:
        return self._shield("create on", None, "create", *args)

    def create(self, *args):
        """Create a file corresponding to this node on the IXP server"""
        return self.try_create(*args).value

    def try_remove(self) -> OpResult:
        return self._shield("remove from", None, "remove")

    def remove(self):
        """Delete the file corresponding to this node on the IXP server"""
        return self.try_remove().value

    def __getitem__(self, sub_path) -> "Node":
        """Return the given sub-path as a Node"""
        return self._cache.child(self, sub_path)

    def at(self, name) -> "Node":
        """Return the child called ``name``, remembered on this instance"""
        key = str(name)
        child = self._children.get(key)
        if child is None:
            child = self._children[key] = self._cache.child(self, key)
        return child

    def parent(self) -> "Node":
        return self._cache.parent(self)

    def children(self) -> List["Node"]:
        """Return all child nodes of this node"""
        return [self[name] for name in self.entries()]

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.children())

    def clear(self) -> List["Node"]:
        """Delete all child nodes, returning the ones that could not be removed"""
        failed = [child for child in self.children() if not child.try_remove()]
        if failed:
            logger.warning(f"Could not remove {len(failed)} of the children of {self.path}")
        return failed

    def __str__(self) -> str:
        return self.path

    def __repr__(self) -> str:
        return f"Node({self.path!r})"

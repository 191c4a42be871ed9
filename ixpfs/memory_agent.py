"""In-process IXP agent backed by a tree of dicts.

Implements the agent primitives used by ``Node`` without a server, for demos,
the websocket bridge and tests::

    agent = MemoryAgent.from_dict({"tag": {"sel": {"ctl": b"view 1\\n"}}})
    set_agent_factory(lambda address: agent)
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .error_handling import IXPError

logger = logging.getLogger(__name__)

# 9P2000 directory bit in file modes
DMDIR = 0x80000000

Tree = Dict[str, Union["Tree", bytes]]


@dataclass
class Stat:
    name: str
    length: int
    mode: int

    @property
    def is_directory(self) -> bool:
        return bool(self.mode & DMDIR)


def _encode(content) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


def _split(path: str) -> List[str]:
    return [part for part in path.split("/") if part]


class MemoryHandle:
    """Open file on a MemoryAgent; reads are served in fixed-size chunks"""

    def __init__(self, agent: "MemoryAgent", path: str, mode: str):
        self.agent = agent
        self.path = path
        self.mode = mode
        self.offset = 0
        self.closed = False

    def read(self, wait: bool = False) -> bytes:
        if self.closed:
            raise IXPError(f"file is closed: {self.path}")
        chunk = self.agent.read(self.path, self.agent.chunk_size, self.offset)
        self.offset += len(chunk)
        return chunk

    def write(self, content):
        if "w" not in self.mode and "a" not in self.mode:
            raise IXPError(f"file not opened for writing: {self.path}")
        self.agent.write(self.path, content)

    def close(self):
        self.closed = True

    def __enter__(self) -> "MemoryHandle":
        return self

    def __exit__(self, *exc_info):
        self.close()


class MemoryAgent:
    def __init__(self, root: Optional[Tree] = None, chunk_size: int = 8192):
        self.root: Tree = root if root is not None else {}
        self.chunk_size = chunk_size
        self.closed = False
        self._lock = threading.Lock()

    @classmethod
    def from_dict(cls, tree: dict, **kwargs) -> "MemoryAgent":
        """Build an agent from nested dicts; leaves may be str or bytes"""
        def convert(subtree):
            return {
                name: convert(value) if isinstance(value, dict) else _encode(value)
                for name, value in subtree.items()
            }
        return cls(convert(tree), **kwargs)

    def _lookup(self, path: str):
        entry = self.root
        for part in _split(path):
            if not isinstance(entry, dict) or part not in entry:
                raise IXPError(f"file not found: {path}", {"path": path})
            entry = entry[part]
        return entry

    def _parent(self, path: str):
        parts = _split(path)
        if not parts:
            raise IXPError("cannot modify the root directory", {"path": path})
        parent = self._lookup("/".join(parts[:-1]))
        if not isinstance(parent, dict):
            raise IXPError(f"not a directory: {path}", {"path": path})
        return parent, parts[-1]

    def _file(self, path: str) -> bytes:
        entry = self._lookup(path)
        if isinstance(entry, dict):
            raise IXPError(f"is a directory: {path}", {"path": path})
        return entry

    def stat(self, path: str) -> Stat:
        entry = self._lookup(path)
        parts = _split(path)
        name = parts[-1] if parts else "/"
        if isinstance(entry, dict):
            return Stat(name, 0, DMDIR | 0o755)
        return Stat(name, len(entry), 0o644)

    def entries(self, path: str) -> List[str]:
        entry = self._lookup(path)
        if not isinstance(entry, dict):
            raise IXPError(f"not a directory: {path}", {"path": path})
        return sorted(entry)

    def open(self, path: str, mode: str = "r") -> MemoryHandle:
        self._lookup(path)
        return MemoryHandle(self, path, mode)

    def read(self, path: str, count: Optional[int] = None, offset: int = 0) -> bytes:
        content = self._file(path)
        end = None if count is None else offset + count
        return content[offset:end]

    def write(self, path: str, content):
        with self._lock:
            parent, name = self._parent(path)
            if name not in parent:
                raise IXPError(f"file not found: {path}", {"path": path})
            if isinstance(parent[name], dict):
                raise IXPError(f"is a directory: {path}", {"path": path})
            parent[name] = _encode(content)

    def create(self, path: str, perm: int = 0o644):
        with self._lock:
            parent, name = self._parent(path)
            if name in parent:
                raise IXPError(f"file already exists: {path}", {"path": path})
            parent[name] = {} if perm & DMDIR else b""
        logger.debug(f"Created {path}")

    def remove(self, path: str):
        with self._lock:
            parent, name = self._parent(path)
            if name not in parent:
                raise IXPError(f"file not found: {path}", {"path": path})
            if isinstance(parent[name], dict) and parent[name]:
                raise IXPError(f"directory not empty: {path}", {"path": path})
            del parent[name]
        logger.debug(f"Removed {path}")

    def close(self):
        self.closed = True


def factory(address: str) -> MemoryAgent:
    """Agent factory serving an empty namespace, for IXPFS_AGENT_FACTORY"""
    logger.warning(f"Serving an in-memory namespace instead of {address}")
    return MemoryAgent()

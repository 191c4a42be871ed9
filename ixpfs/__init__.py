"""
Path-addressed access to a wmii-style IXP (9P2000) namespace.

Nodes are cached by canonical path, navigated lazily, and their namespace
operations log remote failures and fall back to safe defaults.
"""

from . import fs
from .agent import (
    Agent,
    Connection,
    close,
    connect,
    default_connection,
    set_agent_factory,
    socket_agent_factory,
)
from .cache import NodeCache, canonicalize, default_cache, reset_default_cache
from .config import Settings, resolve_address
from .error_handling import (
    InvalidArgument,
    IXPConnectionError,
    IXPError,
    IXPFSError,
    OpResult,
    setup_logging,
)
from .memory_agent import MemoryAgent
from .node import Node

__all__ = [
    "fs",
    "Agent",
    "Connection",
    "close",
    "connect",
    "default_connection",
    "set_agent_factory",
    "socket_agent_factory",
    "NodeCache",
    "canonicalize",
    "default_cache",
    "reset_default_cache",
    "Settings",
    "resolve_address",
    "InvalidArgument",
    "IXPConnectionError",
    "IXPError",
    "IXPFSError",
    "OpResult",
    "setup_logging",
    "MemoryAgent",
    "Node",
]

"""Access to the IXP agent through a single, process-wide connection.

The agent itself (9P2000 codec, session handshake, RPC primitives) is provided
by the caller as a factory taking the server address.
"""

import importlib
import logging
import socket
import threading
from typing import Any, Callable, ContextManager, List, Optional, Protocol

from .config import Settings
from .error_handling import IXPConnectionError

logger = logging.getLogger(__name__)

CONNECTION_HINT = """

Ensure that (1) the WMII_ADDRESS environment variable is set and that (2) it
correctly specifies the absolute filesystem path to wmii's IXP socket file,
which is typically located at "/tmp/ns.${USER}.${DISPLAY}/wmii".
"""


class StatInfo(Protocol):
    is_directory: bool


class Handle(Protocol):
    def read(self, wait: bool = False) -> bytes: ...

    def __enter__(self) -> "Handle": ...

    def __exit__(self, *exc_info) -> Optional[bool]: ...


class Agent(Protocol):
    def stat(self, path: str) -> StatInfo: ...

    def entries(self, path: str) -> List[str]: ...

    def open(self, path: str, mode: str = "r") -> ContextManager[Handle]: ...

    def read(self, path: str, *args) -> bytes: ...

    def write(self, path: str, content) -> Any: ...

    def create(self, path: str, *args) -> Any: ...

    def remove(self, path: str) -> Any: ...


AgentFactory = Callable[[str], Agent]


def socket_agent_factory(agent_cls: Callable[[socket.socket], Agent]) -> AgentFactory:
    """Build a factory that hands a connected UNIX socket to ``agent_cls``"""
    def factory(address: str) -> Agent:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(address)
        except OSError:
            sock.close()
            raise
        try:
            return agent_cls(sock)
        except Exception:
            sock.close()
            raise
    return factory


class LockedHandle:
    """Open file whose requests are serialized with the rest of the connection.

    The lock is taken around each request only, so a caller pausing between
    reads does not block other users of the connection.
    """

    def __init__(self, context: ContextManager[Handle], lock):
        self._context = context
        self._lock = lock
        self._handle: Optional[Handle] = None

    def __enter__(self) -> "LockedHandle":
        with self._lock:
            self._handle = self._context.__enter__()
        return self

    def __exit__(self, *exc_info):
        with self._lock:
            return self._context.__exit__(*exc_info)

    def read(self, *args, **kwargs):
        with self._lock:
            return self._handle.read(*args, **kwargs)

    def write(self, *args, **kwargs):
        with self._lock:
            return self._handle.write(*args, **kwargs)

    def __getattr__(self, name):
        return getattr(self._handle, name)


def load_agent_factory(spec: str) -> AgentFactory:
    """Import an agent factory given as ``module:attribute``"""
    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Invalid agent factory '{spec}', expected 'module:attribute'")
    return getattr(importlib.import_module(module_name), attr)


class Connection:
    """Lazily established, lock-serialized handle to an IXP agent"""

    def __init__(self, factory: Optional[AgentFactory] = None, address: Optional[str] = None):
        self.factory = factory
        self._address = address
        self._agent: Optional[Agent] = None
        self._lock = threading.RLock()

    @property
    def address(self) -> str:
        if self._address is None:
            return Settings.from_env().address
        return self._address

    @property
    def connected(self) -> bool:
        return self._agent is not None

    def agent(self) -> Agent:
        """Return the agent, connecting on first use"""
        with self._lock:
            if self._agent is None:
                self._agent = self._open()
            return self._agent

    def _open(self) -> Agent:
        address = self.address
        try:
            factory = self.factory
            if factory is None:
                spec = Settings.from_env().agent_factory
                if not spec:
                    raise IXPConnectionError("no agent factory configured")
                factory = load_agent_factory(spec)
            agent = factory(address)
        except Exception as e:
            raise IXPConnectionError(f"{e}{CONNECTION_HINT}", {"address": address}) from e
        logger.info(f"Connected to IXP agent at {address}")
        return agent

    def call(self, method: str, *args, **kwargs):
        """Invoke an agent primitive while holding the connection lock"""
        with self._lock:
            return getattr(self.agent(), method)(*args, **kwargs)

    def open(self, path: str, mode: str = "r") -> "LockedHandle":
        """Open ``path``; the returned handle takes the lock per request"""
        with self._lock:
            context = self.agent().open(path, mode)
        return LockedHandle(context, self._lock)

    def close(self):
        """Release the agent; the next call reconnects"""
        with self._lock:
            agent, self._agent = self._agent, None
        if agent is not None and hasattr(agent, "close"):
            agent.close()
            logger.info(f"Closed IXP agent at {self.address}")

    def __enter__(self) -> "Connection":
        self.agent()
        return self

    def __exit__(self, *exc_info):
        self.close()


_connection = Connection()


def default_connection() -> Connection:
    return _connection


def set_agent_factory(factory: Optional[AgentFactory], address: Optional[str] = None):
    """Install the factory used by the process-wide connection.

    Any established agent is closed first.
    """
    _connection.close()
    _connection.factory = factory
    _connection._address = address


def connect() -> Agent:
    """Return the process-wide agent, connecting on first use"""
    return _connection.agent()


def close():
    _connection.close()

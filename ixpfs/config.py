"""Environment-driven settings and IXP server address resolution.

Values are read from the environment:
- WMII_ADDRESS          pre-formatted ``scheme!address`` of the IXP server
- USER, DISPLAY         inputs for the fallback socket path
- IXPFS_AGENT_FACTORY   ``module:attribute`` of the agent factory to use
- IXPFS_LOG_LEVEL       logging level (default INFO)
- IXPFS_LOG_FILE        optional log file
"""

import os
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

DEFAULT_DISPLAY = ":0.0"
SERVICE_NAME = "wmii"
SOCKET_TEMPLATE = "/tmp/ns.{user}.{display}/{service}"

_DISPLAY_NUMBER = re.compile(r":\d+")


def resolve_address(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the filesystem address of the IXP server socket"""
    env = os.environ if environ is None else environ

    address = env.get("WMII_ADDRESS")
    if address is not None:
        # drop the protocol prefix, e.g. "unix!"
        return address.rpartition("!")[2]

    display = env.get("DISPLAY", DEFAULT_DISPLAY)
    match = _DISPLAY_NUMBER.search(display)
    return SOCKET_TEMPLATE.format(
        user=env.get("USER", ""),
        display=match.group(0) if match else "",
        service=SERVICE_NAME,
    )


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for ixpfs"""

    address: str = field(default_factory=resolve_address)
    agent_factory: Optional[str] = field(
        default_factory=lambda: os.getenv("IXPFS_AGENT_FACTORY")
    )
    log_level: str = field(default_factory=lambda: os.getenv("IXPFS_LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("IXPFS_LOG_FILE"))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            address=resolve_address(env),
            agent_factory=env.get("IXPFS_AGENT_FACTORY"),
            log_level=env.get("IXPFS_LOG_LEVEL", "INFO"),
            log_file=env.get("IXPFS_LOG_FILE"),
        )

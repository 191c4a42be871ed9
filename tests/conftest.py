import pytest
from ixpfs.agent import set_agent_factory
from ixpfs.cache import reset_default_cache
from ixpfs.error_handling import IXPError
from ixpfs.memory_agent import MemoryAgent

ADDRESS = "/tmp/ns.tester.:0/wmii"


class FlakyAgent(MemoryAgent):
    """MemoryAgent that fails chosen (method, path) calls"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failures = set()
        self.calls = []

    def fail(self, method, path):
        self.failures.add((method, path))

    def _check(self, method, path):
        self.calls.append((method, path))
        if (method, path) in self.failures:
            raise IXPError(f"{method} failed: {path}", {"path": path})

    def stat(self, path):
        self._check("stat", path)
        return super().stat(path)

    def entries(self, path):
        self._check("entries", path)
        return super().entries(path)

    def read(self, path, *args):
        self._check("read", path)
        return super().read(path, *args)

    def write(self, path, content):
        self._check("write", path)
        return super().write(path, content)

    def create(self, path, *args):
        self._check("create", path)
        return super().create(path, *args)

    def remove(self, path):
        self._check("remove", path)
        return super().remove(path)


def wmii_tree():
    return {
        "colrules": "/gimp/ -> 17+83+41\n/.*/ -> 62+38 # Golden Ratio\n",
        "event": "",
        "lbar": {},
        "client": {
            "0x1": {"label": "xterm", "tags": "1"},
            "0x2": {"label": "emacs", "tags": "1+2"},
            "0x3": {"label": "firefox", "tags": "web"},
        },
        "tag": {
            "1": {"ctl": "select client 0x1\n"},
            "sel": {"ctl": "view 1\n"},
        },
    }


@pytest.fixture(autouse=True)
def clean_state():
    """Reset the process-wide connection and node cache around each test"""
    set_agent_factory(None)
    reset_default_cache()
    yield
    set_agent_factory(None)
    reset_default_cache()


@pytest.fixture
def agent():
    """Install an in-memory wmii namespace as the process-wide agent"""
    agent = FlakyAgent(MemoryAgent.from_dict(wmii_tree()).root)
    set_agent_factory(lambda address: agent, address=ADDRESS)
    return agent

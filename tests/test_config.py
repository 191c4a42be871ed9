import pytest
from ixpfs.config import Settings, resolve_address


@pytest.mark.parametrize("environ,expected", [
    ({"WMII_ADDRESS": "unix!/tmp/ns.joe.:0/wmii"}, "/tmp/ns.joe.:0/wmii"),
    ({"WMII_ADDRESS": "/tmp/ns.joe.:0/wmii"}, "/tmp/ns.joe.:0/wmii"),  # no scheme
    ({"WMII_ADDRESS": "a!b!/run/wmii"}, "/run/wmii"),  # up to the last '!'
    ({"WMII_ADDRESS": "unix!/x", "USER": "joe", "DISPLAY": ":3"}, "/x"),
])
def test_address_from_wmii_address(environ, expected):
    """WMII_ADDRESS wins and loses its protocol prefix"""
    assert resolve_address(environ) == expected


@pytest.mark.parametrize("environ,expected", [
    ({"USER": "joe", "DISPLAY": ":1.0"}, "/tmp/ns.joe.:1/wmii"),
    ({"USER": "joe", "DISPLAY": "localhost:12.0"}, "/tmp/ns.joe.:12/wmii"),
    ({"USER": "joe"}, "/tmp/ns.joe.:0/wmii"),  # DISPLAY defaults to :0.0
    ({"USER": "joe", "DISPLAY": ""}, "/tmp/ns.joe./wmii"),  # set but empty
    ({}, "/tmp/ns..:0/wmii"),
])
def test_fallback_socket_path(environ, expected):
    """Without WMII_ADDRESS the socket path is built from USER and DISPLAY"""
    assert resolve_address(environ) == expected


def test_settings_from_env():
    settings = Settings.from_env({
        "WMII_ADDRESS": "unix!/tmp/wmii",
        "IXPFS_AGENT_FACTORY": "pkg.mod:factory",
        "IXPFS_LOG_LEVEL": "DEBUG",
    })

    assert settings.address == "/tmp/wmii"
    assert settings.agent_factory == "pkg.mod:factory"
    assert settings.log_level == "DEBUG"
    assert settings.log_file is None


def test_settings_defaults(monkeypatch):
    """Settings() reads the process environment"""
    monkeypatch.setenv("WMII_ADDRESS", "unix!/tmp/other")
    monkeypatch.delenv("IXPFS_AGENT_FACTORY", raising=False)
    monkeypatch.delenv("IXPFS_LOG_LEVEL", raising=False)

    settings = Settings()
    assert settings.address == "/tmp/other"
    assert settings.agent_factory is None
    assert settings.log_level == "INFO"

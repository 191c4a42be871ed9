import asyncio
import pytest
from fastapi.testclient import TestClient
from ixpfs.server import COMMANDS, app


@pytest.fixture
def client(agent):
    """Create test client over the in-memory namespace"""
    return TestClient(app)


@pytest.fixture
def websocket(client):
    with client.websocket_connect("/ws") as ws:
        yield ws


def request(ws, command, **params):
    ws.send_json({"command": command, "params": params})
    return ws.receive_json()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "ixpfs"}


class TestServer:
    def test_stat(self, websocket):
        response = request(websocket, "stat", path="/tag")
        assert response["type"] == "success"
        assert response["data"]["is_directory"] is True
        assert response["data"]["name"] == "tag"

    def test_listing(self, websocket):
        assert request(websocket, "entries", path="/tag")["data"] == {"entries": ["1", "sel"]}
        assert request(websocket, "children", path="/tag")["data"] == {
            "children": ["/tag/1", "/tag/sel"]
        }

    def test_file_operations(self, websocket):
        assert request(websocket, "create", path="/lbar/clock")["data"] == {"created": True}
        assert request(websocket, "write", path="/lbar/clock", content="12:00\n")["data"] == {
            "written": True
        }
        assert request(websocket, "read", path="/lbar/clock")["data"] == {"content": "12:00\n"}
        assert request(websocket, "lines", path="/lbar/clock")["data"] == {"lines": ["12:00\n"]}
        assert request(websocket, "exists", path="/lbar/clock")["data"] == {"exists": True}
        assert request(websocket, "remove", path="/lbar/clock")["data"] == {"removed": True}
        assert request(websocket, "is_directory", path="/lbar")["data"] == {"is_directory": True}

    def test_shielded_failures_are_reported(self, websocket):
        assert request(websocket, "write", path="/missing", content="x")["data"] == {
            "written": False
        }
        assert request(websocket, "create", path="/colrules")["data"] == {"created": False}

    def test_clear(self, agent, websocket):
        agent.fail("remove", "/client/0x1/tags")
        response = request(websocket, "clear", path="/client/0x1")
        assert response["data"] == {"failed": ["/client/0x1/tags"]}

    def test_errors(self, websocket):
        response = request(websocket, "invalid_command", path="/tag")
        assert response["type"] == "error"
        assert "Unknown command" in response["message"]

        response = request(websocket, "stat", path="/missing")
        assert response["type"] == "error"
        assert response["details"]["type"] == "IXPError"

        response = request(websocket, "stat")
        assert response["type"] == "error"
        assert "path" in response["message"]

    def test_params_named_like_logging_arguments(self, websocket):
        """Arbitrary parameter names never break the session"""
        response = request(websocket, "stat", path="/tag", operation="x", logger="y")
        assert response["type"] == "success"
        assert request(websocket, "exists", path="/tag")["data"] == {"exists": True}

    def test_malformed_messages_get_error_replies(self, websocket):
        websocket.send_json(["stat", "/tag"])
        assert websocket.receive_json()["type"] == "error"

        websocket.send_json({"command": "stat", "params": "/tag"})
        assert websocket.receive_json()["type"] == "error"

        websocket.send_text("not json")
        assert websocket.receive_json()["type"] == "error"

        assert request(websocket, "exists", path="/tag")["data"] == {"exists": True}

    def test_commands_run_off_the_event_loop(self, websocket, monkeypatch):
        seen = []

        def record(path, params):
            try:
                asyncio.get_running_loop()
                seen.append("event loop")
            except RuntimeError:
                seen.append("worker thread")
            return {}

        monkeypatch.setitem(COMMANDS, "exists", record)

        assert request(websocket, "exists", path="/tag")["type"] == "success"
        assert seen == ["worker thread"]

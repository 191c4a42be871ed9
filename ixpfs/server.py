from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
from typing import Any, Callable, Dict
from . import fs
from .config import Settings
from .error_handling import (
    setup_logging,
    handle_error,
    log_operation,
    IXPFSError,
)

logger = logging.getLogger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _content(data) -> Any:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def _stat(path: str) -> Dict[str, Any]:
    info = fs.stat(path)
    return {
        "path": path,
        "name": getattr(info, "name", None),
        "length": getattr(info, "length", None),
        "mode": getattr(info, "mode", None),
        "is_directory": bool(info.is_directory),
    }


def _create(path: str, params: Dict[str, Any]):
    args = [params["perm"]] if "perm" in params else []
    result = fs.node(path).try_create(*args)
    return {"created": result.ok}


COMMANDS: Dict[str, Callable[[str, Dict[str, Any]], Any]] = {
    "stat": lambda path, params: _stat(path),
    "exists": lambda path, params: {"exists": fs.exists(path)},
    "is_directory": lambda path, params: {"is_directory": fs.is_directory(path)},
    "entries": lambda path, params: {"entries": fs.entries(path)},
    "children": lambda path, params: {"children": [c.path for c in fs.children(path)]},
    "read": lambda path, params: {"content": _content(fs.read(path))},
    "lines": lambda path, params: {"lines": list(fs.lines(path))},
    "write": lambda path, params: {"written": fs.node(path).try_write(params.get("content", "")).ok},
    "create": _create,
    "remove": lambda path, params: {"removed": fs.node(path).try_remove().ok},
    "clear": lambda path, params: {"failed": [c.path for c in fs.clear(path)]},
}


@app.get("/health")
async def health_check():
    """Simple health check endpoint"""
    return {"status": "ok", "service": "ixpfs"}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    logger.debug("New WebSocket connection attempt...")
    await websocket.accept()
    logger.debug("WebSocket connection accepted")
    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError as e:
                await websocket.send_json(
                    handle_error(logger, e, "websocket_communication")
                )
                continue

            command = data.get("command") if isinstance(data, dict) else None
            try:
                if not isinstance(data, dict):
                    raise IXPFSError("Expected a JSON object message")
                params = data.get("params") or {}
                if not isinstance(params, dict):
                    raise IXPFSError("Expected 'params' to be an object", {"command": command})

                logger.debug(f"Received command: {command} with params: {params}")
                log_operation(logger, command, params=params)

                handler = COMMANDS.get(command)
                if handler is None:
                    raise IXPFSError(f"Unknown command: {command}", {"command": command})
                path = params.get("path")
                if not path:
                    raise IXPFSError("Missing parameter: path", {"command": command})
                # agent round trips block, keep them off the event loop
                result = await run_in_threadpool(handler, path, params)
                await websocket.send_json({
                    "type": "success",
                    "data": result
                })
            except WebSocketDisconnect:
                raise
            except Exception as e:
                await websocket.send_json(
                    handle_error(logger, e, command or "websocket_communication")
                )
    except WebSocketDisconnect:
        pass
    finally:
        logger.info("WebSocket connection closed")


def main():
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)
    logger.info(f"IXP server address: {settings.address}")
    uvicorn.run(
        app,
        host="127.0.0.1",
        port=8000,
        log_level=settings.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()

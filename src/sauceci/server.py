# server.py
from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles

from .config import DEFAULT_HOST


def create_app(root: str | Path = ".", compat_mode: Optional[str] = None) -> FastAPI:
    """
    Static file server for the test runner page.

    Args:
        root: Directory to serve
        compat_mode: IE document mode (e.g. "9" or "edge"); when set, every
            .html response carries an X-UA-Compatible header for it
    """
    app = FastAPI(title="sauceci static server", docs_url=None, redoc_url=None, openapi_url=None)

    @app.middleware("http")
    async def add_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-cache"
        # see http://msdn.microsoft.com/en-us/library/ff955275(v=vs.85).aspx
        if compat_mode and request.url.path.endswith(".html"):
            response.headers["X-UA-Compatible"] = f"IE={compat_mode}"
        return response

    app.mount("/", StaticFiles(directory=str(Path(root).resolve()), html=True), name="static")
    return app


def serve_in_background(app: FastAPI, port: int, host: str = DEFAULT_HOST) -> uvicorn.Server:
    """Run `app` on a daemon thread and return once it accepts connections."""
    config = uvicorn.Config(app, host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="sauceci-static", daemon=True)
    thread.start()
    while not server.started and thread.is_alive():
        time.sleep(0.05)
    if not server.started:
        raise OSError(f"static server failed to start on {host}:{port}")
    return server


def serve(root: str | Path, port: int, compat_mode: Optional[str] = None, host: str = DEFAULT_HOST) -> None:
    """Serve `root` in the foreground until interrupted."""
    uvicorn.run(create_app(root, compat_mode), host=host, port=port, log_level="info")

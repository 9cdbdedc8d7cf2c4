from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import requests
import uvicorn
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from common.config import archive_path, load_config
from common.http import install_cors
from common.logging_setup import configure_from, get_logger
from common.types import TileAddress
from image_server.addressing import AddressingScheme, translate
from image_server.errors import GatewayTimeout, TileFetchError, TileNotFound
from image_server.extent import inspect_archive_file, inspect_upstream
from image_server.fetcher import TileFetcher, build_fetcher
from image_server.service_info import describe, describe_catalog
from image_server.state import ServiceState


log = get_logger("image_server")

CACHE_CONTROL = "public, max-age=86400"
QUERY_ERROR = {"error": {"code": 400, "message": "Query operation not supported for offline terrain"}}


def create_app(
    cfg: Optional[Dict[str, Any]] = None,
    *,
    state: Optional[ServiceState] = None,
    fetcher: Optional[TileFetcher] = None,
    session: Optional[requests.Session] = None,
    inspect_on_startup: bool = True,
) -> FastAPI:
    """
    ArcGIS ImageServer facade over one elevation archive.

    The only link to the archive server is `upstream.url` (relay mode); in
    direct mode tiles are read from `archive.directory/archive.file_name`.
    """
    cfg = cfg or load_config()
    state = state or ServiceState()
    session = session or requests.Session()
    fetcher = fetcher or build_fetcher(cfg, session=session)
    scheme = AddressingScheme.parse(cfg["addressing"]["scheme"])
    name = cfg["service"]["name"]
    base = f"/arcgis/rest/services/{name}/ImageServer"

    def _inspect() -> bool:
        """Resolve extent/zoom from the local archive, else via the archive server."""
        local = archive_path(cfg)
        up = cfg["upstream"]
        if up.get("mode") == "direct" or local.is_file():
            return inspect_archive_file(state, local)
        return inspect_upstream(
            state,
            session,
            up["url"],
            cfg["archive"]["file_name"],
            timeout_s=float(up.get("timeout_s", 30.0)),
        )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if inspect_on_startup:
            await run_in_threadpool(_inspect)
        yield

    app = FastAPI(title="Offline Terrain ImageServer", version="1.0.0", lifespan=lifespan)
    app.state.service_state = state
    app.state.fetcher = fetcher
    install_cors(app)

    @app.middleware("http")
    async def _log_request(request: Request, call_next):
        log.info(f"Request: {request.method} {request.url.path}")
        return await call_next(request)

    def _serve_tile(level: int, row: int, col: int) -> Response:
        native = translate(TileAddress(level=level, row=row, col=col), scheme)
        try:
            payload = fetcher.fetch(native)
        except TileNotFound as e:
            log.debug("Tile not found", extra={"extra": {"tile": native.path()}})
            return JSONResponse(e.body(), status_code=e.status_code)
        except GatewayTimeout as e:
            log.warning("Gateway timeout", extra={"extra": {"tile": native.path()}})
            return JSONResponse(e.body(), status_code=e.status_code)
        except TileFetchError as e:
            log.error(f"Proxy error: {e}", extra={"extra": {"tile": native.path(), "status": e.status_code}})
            return JSONResponse(e.body(), status_code=e.status_code)

        headers = dict(payload.headers)
        media_type = headers.pop("Content-Type", "application/octet-stream")
        headers["Cache-Control"] = CACHE_CONTROL
        return Response(content=payload.data, media_type=media_type, headers=headers)

    @app.get("/arcgis/rest/services")
    @app.get("/arcgis/rest/services/")
    def catalog():
        return describe_catalog(cfg)

    @app.get(base)
    @app.get(base + "/")
    def service_info():
        snap = state.snapshot()
        if not snap.resolved:
            # on-demand retry; still unresolved -> degraded document
            _inspect()
            snap = state.snapshot()
        return describe(cfg, snap)

    @app.get(base + "/tile/{level:int}/{row:int}/{col:int}")
    def image_server_tile(level: int, row: int, col: int):
        return _serve_tile(level, row, col)

    @app.get("/tile/{level:int}/{row:int}/{col:int}")
    def debug_tile(level: int, row: int, col: int):
        return _serve_tile(level, row, col)

    @app.get("/health")
    @app.get("/")
    def health():
        return {"status": "ok", "service": name}

    @app.api_route("/{path:path}", methods=["GET", "POST"])
    def fallback(path: str):
        if "/query" in f"/{path}":
            return QUERY_ERROR
        return JSONResponse({"error": "Not found"}, status_code=404)

    return app


app = create_app()


# -------- local dev entrypoint --------
if __name__ == "__main__":
    _cfg = load_config()
    configure_from(_cfg)
    uvicorn.run(app, host=_cfg["service"]["host"], port=int(_cfg["service"]["port"]))

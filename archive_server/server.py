from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles

from archive_server.mbtiles import ArchiveOpenError, MBTilesArchive, TileNotFoundError
from common.config import archive_path, load_config
from common.http import install_cors
from common.logging_setup import configure_from, get_logger


log = get_logger("archive_server")


def _safe_name(file_name: str) -> bool:
    # single path component, no hidden files / parent refs
    return bool(file_name) and Path(file_name).name == file_name and not file_name.startswith(".")


def create_app(cfg: Optional[Dict[str, Any]] = None) -> FastAPI:
    """
    Archive-facing tile service: /tiles/{fileName}/{level}/{col}/{row}.

    Stateless; every request opens the named archive read-only. It shares
    nothing with the ImageServer service except the configuration.
    """
    cfg = cfg or load_config()
    app = FastAPI(title="MBTiles Archive Server", version="1.0.0")
    install_cors(app)

    @app.get("/tiles/{file_name}.json")
    def archive_info(file_name: str):
        if not _safe_name(file_name):
            return JSONResponse({"error": "Not found"}, status_code=404)
        path = archive_path(cfg, file_name)
        try:
            with MBTilesArchive.open(path) as mb:
                info = mb.get_info()
        except ArchiveOpenError as e:
            log.error("Error opening mbtiles file", extra={"extra": {"path": str(path), "error": str(e)}})
            return JSONResponse({"error": "Failed to open mbtiles file", "message": str(e)}, status_code=500)
        doc = info.to_dict()
        doc["tiles"] = [f"/tiles/{file_name}/{{z}}/{{x}}/{{y}}"]
        return doc

    @app.get("/tiles/{file_name}/{level:int}/{col:int}/{row:int}")
    def tile(file_name: str, level: int, col: int, row: int):
        if not _safe_name(file_name):
            return PlainTextResponse("Tile not found", status_code=404)
        path = archive_path(cfg, file_name)
        log.debug("Archive tile request", extra={"extra": {"path": str(path), "z": level, "x": col, "y": row}})
        try:
            with MBTilesArchive.open(path) as mb:
                data, headers = mb.get_tile(level, col, row)
        except ArchiveOpenError as e:
            log.error("Error opening mbtiles file", extra={"extra": {"path": str(path), "error": str(e)}})
            return PlainTextResponse("Failed to open mbtiles file", status_code=500)
        except TileNotFoundError:
            return PlainTextResponse("Tile not found", status_code=404)
        media_type = headers.pop("Content-Type", "application/octet-stream")
        return Response(content=data, media_type=media_type, headers=headers)

    static_dir = cfg["archive"].get("static_dir")
    if static_dir:
        if Path(static_dir).is_dir():
            app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        else:
            log.warning("Static directory missing; not mounted", extra={"extra": {"static_dir": static_dir}})

    return app


app = create_app()


# -------- local dev entrypoint --------
if __name__ == "__main__":
    _cfg = load_config()
    configure_from(_cfg)
    uvicorn.run(app, host=_cfg["archive"]["host"], port=int(_cfg["archive"]["port"]))

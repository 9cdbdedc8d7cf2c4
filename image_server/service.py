"""
Run the ImageServer facade and the archive server in one process.

The two apps are built independently; the ImageServer only knows the
archive server through `upstream.url`.

Examples:
  python -m image_server.service --config config/params.yaml
  python -m image_server.service --only image      # archive served elsewhere
  python -m image_server.service --only archive
"""

from __future__ import annotations

import argparse
import asyncio
import os
from typing import Any, Dict, List

import uvicorn

from archive_server.server import create_app as create_archive_app
from common.config import CONFIG_ENV_VAR, load_config
from common.logging_setup import configure_from, get_logger
from image_server.server import create_app as create_image_app


log = get_logger("image_server.service")


def build_servers(cfg: Dict[str, Any], only: str = "both") -> List[uvicorn.Server]:
    servers: List[uvicorn.Server] = []
    if only in ("both", "archive"):
        a = cfg["archive"]
        servers.append(
            uvicorn.Server(
                uvicorn.Config(create_archive_app(cfg), host=a["host"], port=int(a["port"]), log_config=None)
            )
        )
    if only in ("both", "image"):
        s = cfg["service"]
        servers.append(
            uvicorn.Server(
                uvicorn.Config(create_image_app(cfg), host=s["host"], port=int(s["port"]), log_config=None)
            )
        )
    return servers


async def _serve_all(servers: List[uvicorn.Server]) -> None:
    await asyncio.gather(*(srv.serve() for srv in servers))


def main() -> None:
    ap = argparse.ArgumentParser(description="Offline terrain ImageServer")
    ap.add_argument("--config", default=os.environ.get(CONFIG_ENV_VAR, "config/params.yaml"))
    ap.add_argument("--only", choices=["both", "image", "archive"], default="both")
    args = ap.parse_args()

    cfg = load_config(args.config)
    configure_from(cfg)

    s, a, up = cfg["service"], cfg["archive"], cfg["upstream"]
    log.info(
        "Starting terrain services",
        extra={
            "extra": {
                "service_info": f"http://localhost:{s['port']}/arcgis/rest/services/{s['name']}/ImageServer",
                "tile_url": f"http://localhost:{s['port']}/arcgis/rest/services/{s['name']}/ImageServer/tile/{{level}}/{{row}}/{{col}}",
                "upstream": f"{up['url']}/tiles/{a['file_name']} ({up['mode']})",
                "archive_server": f"http://localhost:{a['port']}" if args.only != "image" else None,
            }
        },
    )
    try:
        asyncio.run(_serve_all(build_servers(cfg, args.only)))
    except KeyboardInterrupt:
        log.info("Terrain services stopped")


if __name__ == "__main__":
    main()

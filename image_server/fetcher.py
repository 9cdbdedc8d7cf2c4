"""
Tile fetch strategies behind one contract: fetch(NativeAddress) -> TilePayload.

- RelayTileFetcher: HTTP hop to the archive server (default, "relay")
- ArchiveTileFetcher: in-process MBTiles read ("direct")

Failures raise the request-scoped errors from image_server.errors; nothing
here retries.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

import requests
from urllib3.exceptions import HTTPError as UpstreamHTTPError, ReadTimeoutError

from archive_server.mbtiles import ArchiveOpenError, MBTilesArchive, TileNotFoundError
from common.config import archive_path
from common.types import NativeAddress, TilePayload
from image_server.errors import ArchiveOpenFailure, GatewayFailure, GatewayTimeout, TileNotFound


DEFAULT_TIMEOUT_S = 30.0
_CHUNK = 64 * 1024


class TileFetcher(Protocol):
    def fetch(self, native: NativeAddress) -> TilePayload: ...


class RelayTileFetcher:
    """
    Relay to `{base_url}/tiles/{file_name}/{level}/{col}/{row}`.

    `timeout_s` bounds the whole exchange (connect, headers and body); once
    it is spent the upstream response is closed and GatewayTimeout raised.
    """

    def __init__(
        self,
        base_url: str,
        file_name: str,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.file_name = file_name
        self.timeout_s = float(timeout_s)
        self.session = session or requests.Session()

    def url_for(self, native: NativeAddress) -> str:
        return f"{self.base_url}/tiles/{self.file_name}/{native.path()}"

    def fetch(self, native: NativeAddress) -> TilePayload:
        url = self.url_for(native)
        deadline = time.monotonic() + self.timeout_s
        try:
            r = self.session.get(url, timeout=self.timeout_s, stream=True)
        except requests.Timeout as e:
            raise GatewayTimeout() from e
        except requests.RequestException as e:
            raise GatewayFailure(str(e)) from e

        try:
            if r.status_code != 200:
                raise TileNotFound()
            data = bytearray()
            # raw body: a Content-Encoding set by the archive is not undone here
            for chunk in r.raw.stream(_CHUNK, decode_content=False):
                if time.monotonic() > deadline:
                    raise GatewayTimeout()
                data.extend(chunk)
        except (requests.Timeout, ReadTimeoutError) as e:
            raise GatewayTimeout() from e
        except (requests.RequestException, UpstreamHTTPError) as e:
            raise GatewayFailure(str(e)) from e
        finally:
            r.close()

        return TilePayload(data=bytes(data), headers={"Content-Type": "application/octet-stream"})


class ArchiveTileFetcher:
    """Read tiles straight from the archive file; forwards its headers verbatim."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def fetch(self, native: NativeAddress) -> TilePayload:
        try:
            with MBTilesArchive.open(self.path) as mb:
                data, headers = mb.get_tile(native.level, native.col, native.row)
        except ArchiveOpenError as e:
            raise ArchiveOpenFailure(str(e)) from e
        except TileNotFoundError as e:
            raise TileNotFound() from e
        return TilePayload(data=data, headers=headers)


def build_fetcher(cfg: Dict[str, Any], session: Optional[requests.Session] = None) -> TileFetcher:
    """Pick the strategy named by upstream.mode (relay | direct)."""
    up = cfg["upstream"]
    mode = str(up.get("mode", "relay")).lower()
    if mode == "direct":
        return ArchiveTileFetcher(archive_path(cfg))
    if mode == "relay":
        return RelayTileFetcher(
            base_url=up["url"],
            file_name=cfg["archive"]["file_name"],
            timeout_s=float(up.get("timeout_s", DEFAULT_TIMEOUT_S)),
            session=session,
        )
    raise ValueError(f"Unknown upstream.mode: {mode!r} (expected relay|direct)")

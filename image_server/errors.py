"""Request-scoped tile fetch failures. None of these are fatal to the process."""


class TileFetchError(Exception):
    status_code = 500
    error = "Tile fetch failed"

    def body(self) -> dict:
        out = {"error": self.error}
        if str(self):
            out["message"] = str(self)
        return out


class TileNotFound(TileFetchError):
    """Tile absent from the archive. Expected and frequent for sparse coverage."""
    status_code = 404
    error = "Tile not found"

    def body(self) -> dict:
        return {"error": self.error}


class GatewayFailure(TileFetchError):
    """Transport or connection error while reaching the tile store."""
    status_code = 502
    error = "Bad gateway"


class GatewayTimeout(TileFetchError):
    """Upstream relay exceeded the timeout budget."""
    status_code = 504
    error = "Gateway timeout"

    def body(self) -> dict:
        return {"error": self.error}


class ArchiveOpenFailure(TileFetchError):
    """Archive missing or unreadable (direct mode)."""
    status_code = 500
    error = "Failed to open mbtiles file"

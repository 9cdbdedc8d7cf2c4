from __future__ import annotations

from enum import Enum

from common.geo import tile_count
from common.types import NativeAddress, TileAddress


class AddressingScheme(str, Enum):
    """
    Row convention of the tile store behind the service.

    XYZ: top-origin rows, same as ImageServer clients (default).
    TMS: bottom-origin rows; rows are flipped per level.
    """
    XYZ = "xyz"
    TMS = "tms"

    @classmethod
    def parse(cls, value: str) -> "AddressingScheme":
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown addressing scheme: {value!r} (expected xyz|tms)") from None


def flip_row(level: int, row: int) -> int:
    """TMS <-> XYZ row flip. Its own inverse."""
    return tile_count(level) - 1 - row


def translate(address: TileAddress, scheme: AddressingScheme = AddressingScheme.XYZ) -> NativeAddress:
    """
    Public level/row/col -> archive level/col/row.

    Only the path order changes for XYZ. Out-of-range values are passed
    through; the store reports them as missing.
    """
    row = address.row
    if scheme is AddressingScheme.TMS:
        row = flip_row(address.level, row)
    return NativeAddress(level=address.level, col=address.col, row=row)


def to_public(native: NativeAddress, scheme: AddressingScheme = AddressingScheme.XYZ) -> TileAddress:
    """Inverse of translate()."""
    row = native.row
    if scheme is AddressingScheme.TMS:
        row = flip_row(native.level, row)
    return TileAddress(level=native.level, row=row, col=native.col)

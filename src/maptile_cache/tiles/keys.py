"""Storage key layout for cached tiles."""

from typing import Union

Token = Union[str, int]

# Extension the cache is probed with before the real format is known
PROBE_EXTENSION = "png"


def derive_key(namespace: str, zoom: Token, column: Token, row: Token, extension: str) -> str:
    """
    Derive the object store key for a tile.

    Produces ``{namespace}/tiles/{zoom}/{column}/{row}.{extension}``. Leading
    and trailing slashes are stripped from the namespace and the segment is
    dropped when nothing remains. Tokens are used verbatim.

    Example:
        >>> derive_key("osm", "3", "1", "2", "png")
        'osm/tiles/3/1/2.png'
    """
    prefix = (namespace or "").strip("/")
    tile_path = f"tiles/{zoom}/{column}/{row}.{extension}"
    return f"{prefix}/{tile_path}" if prefix else tile_path

from typing import Optional

from asset_gateway.gateway.models import INDEX_FILENAME, PathKind

FONTS_PREFIX = "fonts/"


def is_index(path: str) -> bool:
    return path in ("", "/") or path.startswith(INDEX_FILENAME)


def classify(path: str, assets_prefix: Optional[str] = None) -> PathKind:
    """Tell what a requested path points at. ``fonts/`` never depends on ``assets_prefix``."""
    if is_index(path):
        return PathKind.INDEX
    if path.startswith(FONTS_PREFIX):
        return PathKind.FONT
    return PathKind.GENERIC

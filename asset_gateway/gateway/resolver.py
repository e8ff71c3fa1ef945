import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from asset_gateway.gateway.errors import ConfigurationError, MalformedRemoteConfig
from asset_gateway.gateway.html_rewriter import rewrite_index_html
from asset_gateway.gateway.models import (
    GatewayConfig,
    RemoteAssetConfig,
    Resolution,
    ResolutionKind,
)
from asset_gateway.gateway.path_classifier import is_index
from asset_gateway.gateway.remote_proxy import RemoteAssetProxy
from asset_gateway.utils import redact_url

logger = logging.getLogger("uvicorn.error")

ASSETS_NOT_COMPILED = (
    "To launch the application, assets must be compiled or served with the dev "
    "server for the development"
)


def load_remote_config(path: Path) -> RemoteAssetConfig:
    """Read the remote assets config. Read on every request so it can change live."""
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedRemoteConfig(f"Cannot read remote assets config {path}: {e}") from e
    try:
        return RemoteAssetConfig.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedRemoteConfig(
            f"Invalid remote assets config {path}: {e.error_count()} error(s), "
            "expected a JSON object with a non-empty string assetBaseUrl"
        ) from e


class AssetResolver:
    """
    Pick how a request is served.

    Remote mode (a remote assets config exists) and local mode are exclusive:
    in remote mode nothing under the public root is read except that config.
    """

    def __init__(self, config: GatewayConfig, remote_proxy: Optional[RemoteAssetProxy] = None):
        self.config = config
        self.remote_proxy = remote_proxy or RemoteAssetProxy(config)

    async def resolve(self, path: str) -> Resolution:
        remote_config_path = self.config.remote_config_path
        if remote_config_path.is_file():
            remote_config = load_remote_config(remote_config_path)
            logger.debug(
                f"[AssetResolver] Remote mode, proxying {path!r} to {redact_url(remote_config.assetBaseUrl)}"
            )
            proxied = await self.remote_proxy.proxy(path, remote_config)
            return Resolution(kind=ResolutionKind.PROXY, proxied=proxied)

        index_path = self.config.index_path
        if not index_path.is_file():
            logger.error(f"[AssetResolver] No compiled index at {index_path}")
            raise ConfigurationError(ASSETS_NOT_COMPILED)

        if not is_index(path):
            local_file = self.local_file_for(path)
            if local_file is not None:
                return Resolution(kind=ResolutionKind.LOCAL_FILE, file_path=local_file)

        content = rewrite_index_html(index_path.read_bytes(), self.config.assets_prefix)
        return Resolution(kind=ResolutionKind.LOCAL_INDEX, content=content)

    def local_file_for(self, path: str) -> Optional[Path]:
        """The file under the public root named by ``path``, if there is one."""
        root = self.config.public_root.resolve()
        try:
            candidate = (root / path.lstrip("/")).resolve()
        except (OSError, ValueError) as e:
            logger.warning(f"[AssetResolver] Unusable path {path!r}: {e}")
            return None
        if candidate != root and root not in candidate.parents:
            logger.warning(f"[AssetResolver] Refusing path outside the public root: {path!r}")
            return None
        try:
            is_file = candidate.is_file()
        except OSError as e:
            # e.g. ENAMETOOLONG for client routes carrying long tokens
            logger.warning(f"[AssetResolver] Cannot stat {path!r}: {e}")
            return None
        return candidate if is_file else None

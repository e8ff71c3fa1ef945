from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, FrozenSet, Optional, Union

import httpx
from pydantic import BaseModel, field_validator

from asset_gateway import vars as gateway_vars

REMOTE_CONFIG_FILENAME = "remote-assets-config.json"
INDEX_FILENAME = "index.html"


class PathKind(str, Enum):
    INDEX = "index"
    FONT = "font"
    GENERIC = "generic"


class FetchAttempt(str, Enum):
    """Attempts made by the remote proxy, in order. There is no third one."""

    DIRECT = "direct"
    INDEX_FALLBACK = "index_fallback"


@dataclass(frozen=True)
class GatewayConfig:
    """Process wide settings, built once at startup."""

    public_root: Path
    assets_prefix: str = "/assets"
    excluded_zones: FrozenSet[str] = frozenset()
    remote_timeout: float = 10.0
    remote_verify_tls: bool = False

    @classmethod
    def from_vars(cls) -> "GatewayConfig":
        return cls(
            public_root=Path(gateway_vars.PUBLIC_ROOT),
            assets_prefix=gateway_vars.ASSETS_PREFIX,
            excluded_zones=frozenset(gateway_vars.EXCLUDED_ZONES),
            remote_timeout=gateway_vars.REMOTE_ASSETS_TIMEOUT,
            remote_verify_tls=gateway_vars.REMOTE_ASSETS_VERIFY_TLS,
        )

    @property
    def assets_dir(self) -> Path:
        return self.public_root / self.assets_prefix.strip("/")

    @property
    def remote_config_path(self) -> Path:
        return self.assets_dir / REMOTE_CONFIG_FILENAME

    @property
    def index_path(self) -> Path:
        return self.assets_dir / INDEX_FILENAME


class RemoteAssetConfig(BaseModel):
    assetBaseUrl: str

    @field_validator("assetBaseUrl")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("assetBaseUrl must not be empty")
        return value.rstrip("/")


@dataclass
class ProxiedResponse:
    """
    Response produced by the remote proxy.

    ``body`` is either the complete (rewritten) payload or a single-pass
    async iterator over the upstream chunks. ``headers`` keeps repeated
    fields (``set-cookie``) as separate entries.
    """

    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Union[bytes, AsyncIterator[bytes]] = b""

    @property
    def is_streamed(self) -> bool:
        return not isinstance(self.body, (bytes, bytearray))


class ResolutionKind(str, Enum):
    LOCAL_INDEX = "local_index"
    LOCAL_FILE = "local_file"
    PROXY = "proxy"


@dataclass
class Resolution:
    kind: ResolutionKind
    content: Optional[bytes] = None
    file_path: Optional[Path] = None
    proxied: Optional[ProxiedResponse] = None

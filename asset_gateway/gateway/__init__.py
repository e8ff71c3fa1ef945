"""
SPA asset gateway: serves the compiled single page application.

Requests resolve, in order of precedence, to:
    - the remote asset host, when ``remote-assets-config.json`` exists in the
      assets directory (remote mode)
    - a file under the public root
    - the index document, for every other path (client side routing)
"""

from .access_gate import AccessDecision, AccessGate, FirewallZoneResolver, ZoneResolver
from .errors import (
    AccessDenied,
    AssetNotFound,
    ConfigurationError,
    GatewayError,
    MalformedRemoteConfig,
    UpstreamError,
)
from .html_rewriter import rewrite_index_html
from .models import (
    FetchAttempt,
    GatewayConfig,
    PathKind,
    ProxiedResponse,
    RemoteAssetConfig,
    Resolution,
    ResolutionKind,
)
from .path_classifier import classify
from .remote_proxy import RemoteAssetProxy
from .resolver import AssetResolver

__all__ = [
    "AccessDecision",
    "AccessGate",
    "FirewallZoneResolver",
    "ZoneResolver",
    "AccessDenied",
    "AssetNotFound",
    "ConfigurationError",
    "GatewayError",
    "MalformedRemoteConfig",
    "UpstreamError",
    "rewrite_index_html",
    "FetchAttempt",
    "GatewayConfig",
    "PathKind",
    "ProxiedResponse",
    "RemoteAssetConfig",
    "Resolution",
    "ResolutionKind",
    "classify",
    "RemoteAssetProxy",
    "AssetResolver",
]

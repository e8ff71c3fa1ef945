import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse, Response, StreamingResponse
from opentelemetry import trace

from asset_gateway.gateway.access_gate import AccessGate, FirewallZoneResolver, ZoneResolver
from asset_gateway.gateway.errors import AccessDenied, GatewayError
from asset_gateway.gateway.models import GatewayConfig, Resolution, ResolutionKind
from asset_gateway.gateway.remote_proxy import (
    ClientFactory,
    RemoteAssetProxy,
    default_client_factory,
)
from asset_gateway.gateway.resolver import AssetResolver
from asset_gateway.utils.exception_logging import log_exception_with_details
from asset_gateway.utils.traced_requests import traced_request
from asset_gateway.vars import SECURITY_ZONES

router = APIRouter()
tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")


@lru_cache
def get_gateway_config() -> GatewayConfig:
    config = GatewayConfig.from_vars()
    logger.info(
        f"[Gateway] Serving {config.public_root} with assets prefix {config.assets_prefix}, "
        f"excluded zones: {sorted(config.excluded_zones)}"
    )
    return config


@lru_cache
def get_zone_resolver() -> ZoneResolver:
    return FirewallZoneResolver(SECURITY_ZONES)


def get_remote_client_factory() -> ClientFactory:
    return default_client_factory


def to_response(resolution: Resolution) -> Response:
    if resolution.kind is ResolutionKind.LOCAL_FILE:
        return FileResponse(resolution.file_path)
    if resolution.kind is ResolutionKind.LOCAL_INDEX:
        return HTMLResponse(resolution.content)

    proxied = resolution.proxied
    if proxied.is_streamed:
        response = StreamingResponse(proxied.body, status_code=proxied.status_code)
    else:
        response = Response(content=proxied.body, status_code=proxied.status_code)
    # Appended one by one: a headers mapping would fold repeated set-cookie fields
    for name, value in proxied.headers.multi_items():
        response.headers.append(name, value)
    return response


# Catch-all: the router must be included after every other route
@router.get("/{path:path}")
async def serve_asset(
    request: Request,
    path: str,
    config: GatewayConfig = Depends(get_gateway_config),
    zone_resolver: ZoneResolver = Depends(get_zone_resolver),
    client_factory: ClientFactory = Depends(get_remote_client_factory),
):
    zone = zone_resolver.zone_of(request)
    with traced_request(
        tracer,
        operation="serve_asset",
        path=path,
        zone=zone,
        start_message=f"[Gateway] GET /{path} (zone: {zone})",
    ) as span:
        try:
            AccessGate(config.excluded_zones).enforce(zone)
            resolver = AssetResolver(config, RemoteAssetProxy(config, client_factory))
            resolution = await resolver.resolve(path)
        except AccessDenied as e:
            span.set_attribute("gateway.outcome", "access_denied")
            raise HTTPException(status_code=e.status_code, detail=e.detail)
        except GatewayError as e:
            span.set_attribute("gateway.outcome", type(e).__name__)
            if e.status_code >= 500:
                log_exception_with_details(logger, "[Gateway]", e)
            else:
                logger.info(f"[Gateway] /{path} answered with {e.status_code}")
            raise HTTPException(status_code=e.status_code, detail=e.detail)

        span.set_attribute("gateway.outcome", resolution.kind.value)
        return to_response(resolution)

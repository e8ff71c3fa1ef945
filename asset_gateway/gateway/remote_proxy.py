import logging
from typing import AsyncIterator, Callable, Optional

import httpx
from opentelemetry import trace

from asset_gateway.gateway.errors import AssetNotFound, UpstreamError
from asset_gateway.gateway.html_rewriter import rewrite_index_html
from asset_gateway.gateway.models import (
    INDEX_FILENAME,
    FetchAttempt,
    GatewayConfig,
    PathKind,
    ProxiedResponse,
    RemoteAssetConfig,
)
from asset_gateway.gateway.path_classifier import FONTS_PREFIX, classify
from asset_gateway.utils import redact_url
from asset_gateway.utils.exception_logging import format_exception_message

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

# Upstream bodies are decoded and possibly re-chunked or rewritten, so the
# upstream framing no longer applies
FRAMING_HEADERS = {
    "content-encoding",
    "transfer-encoding",
    "accept-ranges",
    "content-length",
}

# Hop-by-hop headers that should NOT be forwarded (RFC 2616)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "upgrade",
}

ClientFactory = Callable[[GatewayConfig], httpx.AsyncClient]


def default_client_factory(config: GatewayConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.remote_timeout),
        verify=config.remote_verify_tls,
        follow_redirects=True,
    )


def filter_response_headers(headers: httpx.Headers) -> httpx.Headers:
    """
    Copy upstream headers, dropping framing and hop-by-hop ones.

    Repeated fields stay separate: ``set-cookie`` values cannot be joined.
    """
    return httpx.Headers(
        [
            (name, value)
            for name, value in headers.multi_items()
            if name.lower() not in FRAMING_HEADERS and name.lower() not in HOP_BY_HOP_HEADERS
        ]
    )


def utf8_content_type(content_type: Optional[str]) -> str:
    """``content_type`` with its charset replaced by UTF-8 (default ``text/html``)."""
    if not content_type:
        return "text/html; charset=utf-8"
    params = [
        part.strip()
        for part in content_type.split(";")[1:]
        if part.strip() and not part.strip().lower().startswith("charset=")
    ]
    return "; ".join([content_type.split(";")[0].strip(), *params, "charset=utf-8"])


def remote_path_for(path: str, base_asset: str) -> Optional[str]:
    """
    Path to request on the remote host, or None when ``path`` is outside
    the assets served from there.

    Fonts sit at the root of the remote host, under no assets prefix.
    """
    if classify(path) is PathKind.FONT:
        return path[len(FONTS_PREFIX):]
    if path.startswith(base_asset):
        return path[len(base_asset):]
    return None


class RemoteAssetProxy:
    """
    Serve assets from the remote asset host named in the remote assets config.

    A request is tried at most twice: once for the requested path and, when
    that path is unknown here or upstream, once for the index document so the
    SPA can route it client side.
    """

    def __init__(
        self,
        config: GatewayConfig,
        client_factory: ClientFactory = default_client_factory,
    ):
        self.config = config
        self.client_factory = client_factory

    @property
    def base_asset(self) -> str:
        return self.config.assets_prefix.strip("/") + "/"

    @property
    def index_path(self) -> str:
        return self.base_asset + INDEX_FILENAME

    async def proxy(self, path: str, remote_config: RemoteAssetConfig) -> ProxiedResponse:
        index_path = self.index_path
        attempt = FetchAttempt.DIRECT
        is_index_content = False

        if classify(path) is PathKind.INDEX:
            path = index_path
            is_index_content = True

        while True:
            remote_path = remote_path_for(path, self.base_asset)

            if remote_path is None:
                if attempt is FetchAttempt.DIRECT and path != index_path:
                    logger.debug(
                        f"[RemoteAssetProxy] {path} is not a remote asset, serving the index"
                    )
                    path, attempt, is_index_content = index_path, FetchAttempt.INDEX_FALLBACK, True
                    continue
                raise AssetNotFound()

            url = f"{remote_config.assetBaseUrl}/{remote_path}"
            try:
                return await self._fetch(url, attempt, is_index_content)
            except UpstreamError as e:
                if e.status_code != 404:
                    raise
                if attempt is FetchAttempt.DIRECT and path != index_path:
                    logger.info(
                        f"[RemoteAssetProxy] {redact_url(url)} not found upstream, serving the index"
                    )
                    path, attempt, is_index_content = index_path, FetchAttempt.INDEX_FALLBACK, True
                    continue
                if attempt is FetchAttempt.INDEX_FALLBACK:
                    raise AssetNotFound() from e
                raise

    async def _fetch(
        self, url: str, attempt: FetchAttempt, is_index_content: bool
    ) -> ProxiedResponse:
        with tracer.start_as_current_span("remote_asset_fetch") as span:
            span.set_attribute("proxy.target_url", redact_url(url))
            span.set_attribute("proxy.attempt", attempt.value)
            logger.debug(f"[RemoteAssetProxy] GET {redact_url(url)} ({attempt.value})")

            client = self.client_factory(self.config)
            try:
                upstream = await self._send(client, url, span)
            except BaseException:
                await client.aclose()
                raise

            code = upstream.status_code
            span.set_attribute("proxy.status_code", code)

            if not 200 <= code < 400:
                try:
                    body = await upstream.aread()
                finally:
                    await upstream.aclose()
                    await client.aclose()
                raise UpstreamError(code, body.decode("utf-8", errors="replace"), url=url)

            headers = filter_response_headers(upstream.headers)

            if is_index_content:
                try:
                    content = await upstream.aread()
                finally:
                    await upstream.aclose()
                    await client.aclose()
                # The rewritten document is serialized as UTF-8
                headers["content-type"] = utf8_content_type(headers.get("content-type"))
                return ProxiedResponse(
                    status_code=code,
                    headers=headers,
                    body=rewrite_index_html(
                        content,
                        self.config.assets_prefix,
                        from_encoding=upstream.charset_encoding,
                    ),
                )

            return ProxiedResponse(
                status_code=code,
                headers=headers,
                body=stream_upstream_body(client, upstream),
            )

    async def _send(self, client: httpx.AsyncClient, url: str, span: trace.Span) -> httpx.Response:
        try:
            return await client.send(client.build_request("GET", url), stream=True)
        except httpx.TimeoutException as e:
            logger.error(f"[RemoteAssetProxy] Timeout for {redact_url(url)}: {e}")
            span.set_attribute("proxy.error", "timeout")
            raise UpstreamError(504, "Gateway timeout", url=url) from e
        except httpx.ConnectError as e:
            logger.error(f"[RemoteAssetProxy] Failed to connect to {redact_url(url)}: {e}")
            span.set_attribute("proxy.error", "connection_failed")
            raise UpstreamError(
                502, "Bad gateway - cannot connect to remote asset host", url=url
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"[RemoteAssetProxy] Fetch error for {redact_url(url)}: {e}")
            span.set_attribute("proxy.error", str(e))
            raise UpstreamError(
                502, f"Bad gateway: {format_exception_message(e)}", url=url
            ) from e


async def stream_upstream_body(
    client: httpx.AsyncClient, upstream: httpx.Response
) -> AsyncIterator[bytes]:
    """
    Forward the upstream body chunk by chunk.

    Single pass: the upstream connection is closed once the body is exhausted
    or the consumer stops early (client disconnect cancels the iteration).
    """
    try:
        async for chunk in upstream.aiter_bytes():
            yield chunk
    finally:
        await upstream.aclose()
        await client.aclose()

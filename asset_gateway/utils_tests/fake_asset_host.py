from typing import Dict, List, Optional, Sequence, Tuple, Union

import httpx

from asset_gateway.gateway.models import GatewayConfig


class FakeAssetHost:
    """
    In-memory remote asset host backed by ``httpx.MockTransport``.

    Unknown URLs answer 404. Every request is recorded in ``requested``.
    """

    def __init__(self, routes: Optional[Dict[str, Tuple[int, dict, object]]] = None):
        self.routes = dict(routes or {})
        self.requested: List[str] = []
        self.clients: List[httpx.AsyncClient] = []

    def add(
        self,
        url: str,
        content=b"",
        status_code: int = 200,
        headers: Optional[Union[dict, Sequence[Tuple[str, str]]]] = None,
    ):
        self.routes[url] = (status_code, headers or {}, content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        status_code, headers, content = self.routes.get(url, (404, {}, b"Not Found"))
        return httpx.Response(status_code, headers=headers, content=content)

    def client_factory(self, config: GatewayConfig) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        self.clients.append(client)
        return client


class FailingAssetHost(FakeAssetHost):
    def __init__(self, error: Exception):
        super().__init__()
        self.error = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requested.append(str(request.url))
        raise self.error

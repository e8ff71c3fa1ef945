import json

import pytest

from asset_gateway.gateway.models import GatewayConfig
from asset_gateway.utils_tests.fake_asset_host import FakeAssetHost

INDEX_HTML = (
    "<!DOCTYPE html><html><head>"
    '<link rel="icon" href="favicon.ico">'
    '<link rel="stylesheet" href="styles.css">'
    "</head><body><div id=\"root\"></div>"
    '<script src="main.js"></script>'
    "</body></html>"
)


@pytest.fixture
def public_root(tmp_path):
    """A public root with a compiled index document under /assets."""
    root = tmp_path / "public"
    assets = root / "assets"
    assets.mkdir(parents=True)
    (assets / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    return root


@pytest.fixture
def gateway_config(public_root):
    return GatewayConfig(public_root=public_root, assets_prefix="/assets")


@pytest.fixture
def write_remote_config(public_root):
    """Switch the public root to remote mode."""

    def _write(data=None, raw=None):
        path = public_root / "assets" / "remote-assets-config.json"
        if raw is None:
            raw = json.dumps(
                data if data is not None else {"assetBaseUrl": "https://cdn.example.com"}
            )
        path.write_text(raw, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def asset_host():
    return FakeAssetHost()

import pytest

from asset_gateway.gateway.errors import ConfigurationError, MalformedRemoteConfig
from asset_gateway.gateway.models import ResolutionKind
from asset_gateway.gateway.remote_proxy import RemoteAssetProxy
from asset_gateway.gateway.resolver import (
    ASSETS_NOT_COMPILED,
    AssetResolver,
    load_remote_config,
)


@pytest.fixture
def resolver(gateway_config, asset_host):
    return AssetResolver(gateway_config, RemoteAssetProxy(gateway_config, asset_host.client_factory))


class TestLocalMode:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["", "/", "index.html"])
    async def test_index_paths_serve_the_rewritten_index(self, resolver, path):
        resolution = await resolver.resolve(path)

        assert resolution.kind is ResolutionKind.LOCAL_INDEX
        assert b'src="/assets/main.js"' in resolution.content
        assert b'href="/assets/styles.css"' in resolution.content
        assert b'href="/assets/favicon.ico"' in resolution.content

    @pytest.mark.asyncio
    async def test_existing_file_is_served_directly(self, resolver, public_root):
        asset = public_root / "assets" / "app.js"
        asset.write_text("console.log(1)")

        resolution = await resolver.resolve("assets/app.js")

        assert resolution.kind is ResolutionKind.LOCAL_FILE
        assert resolution.file_path == asset.resolve()

    @pytest.mark.asyncio
    async def test_index_path_never_serves_a_file(self, resolver, public_root):
        (public_root / "index.html").write_text("<p>stale</p>")

        resolution = await resolver.resolve("index.html")

        assert resolution.kind is ResolutionKind.LOCAL_INDEX
        assert b"stale" not in resolution.content

    @pytest.mark.asyncio
    async def test_client_route_falls_back_to_index(self, resolver):
        resolution = await resolver.resolve("dashboard/settings")

        assert resolution.kind is ResolutionKind.LOCAL_INDEX

    @pytest.mark.asyncio
    async def test_directory_falls_back_to_index(self, resolver):
        resolution = await resolver.resolve("assets")

        assert resolution.kind is ResolutionKind.LOCAL_INDEX

    @pytest.mark.asyncio
    async def test_overlong_path_segment_falls_back_to_index(self, resolver):
        resolution = await resolver.resolve("reset-password/" + "a" * 300)

        assert resolution.kind is ResolutionKind.LOCAL_INDEX
        assert b'src="/assets/main.js"' in resolution.content

    @pytest.mark.asyncio
    async def test_path_escaping_public_root_falls_back_to_index(self, resolver, public_root):
        (public_root.parent / "secret.txt").write_text("top secret")

        resolution = await resolver.resolve("../secret.txt")

        assert resolution.kind is ResolutionKind.LOCAL_INDEX
        assert b"top secret" not in resolution.content

    @pytest.mark.asyncio
    async def test_missing_index_is_a_configuration_error(self, resolver, public_root):
        (public_root / "assets" / "index.html").unlink()

        with pytest.raises(ConfigurationError) as exc_info:
            await resolver.resolve("assets/app.js")

        assert exc_info.value.detail == ASSETS_NOT_COMPILED
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_local_mode_never_calls_the_remote_host(self, resolver, asset_host):
        await resolver.resolve("dashboard")

        assert asset_host.requested == []


class TestRemoteMode:
    @pytest.mark.asyncio
    async def test_remote_config_overrides_local_files(
        self, resolver, public_root, asset_host, write_remote_config, monkeypatch
    ):
        (public_root / "assets" / "app.js").write_text("local copy")
        write_remote_config()
        asset_host.add("https://cdn.example.com/app.js", b"remote copy")

        def _no_local_reads(self, path):
            raise AssertionError("local file lookup in remote mode")

        monkeypatch.setattr(AssetResolver, "local_file_for", _no_local_reads)

        resolution = await resolver.resolve("assets/app.js")

        assert resolution.kind is ResolutionKind.PROXY
        assert asset_host.requested == ["https://cdn.example.com/app.js"]
        body = b"".join([chunk async for chunk in resolution.proxied.body])
        assert body == b"remote copy"

    @pytest.mark.asyncio
    async def test_remote_mode_does_not_need_a_local_index(
        self, resolver, public_root, asset_host, write_remote_config
    ):
        (public_root / "assets" / "index.html").unlink()
        write_remote_config()
        asset_host.add("https://cdn.example.com/index.html", b'<script src="main.js"></script>')

        resolution = await resolver.resolve("")

        assert resolution.kind is ResolutionKind.PROXY
        assert b'src="/assets/main.js"' in resolution.proxied.body

    @pytest.mark.asyncio
    async def test_remote_config_is_read_on_every_request(
        self, resolver, asset_host, write_remote_config
    ):
        asset_host.add("https://cdn.example.com/app.js", b"v1")
        asset_host.add("https://cdn-2.example.com/app.js", b"v2")

        write_remote_config({"assetBaseUrl": "https://cdn.example.com"})
        await resolver.resolve("assets/app.js")
        write_remote_config({"assetBaseUrl": "https://cdn-2.example.com"})
        await resolver.resolve("assets/app.js")

        assert asset_host.requested == [
            "https://cdn.example.com/app.js",
            "https://cdn-2.example.com/app.js",
        ]

    @pytest.mark.asyncio
    async def test_trailing_slash_on_base_url(self, resolver, asset_host, write_remote_config):
        write_remote_config({"assetBaseUrl": "https://cdn.example.com/"})
        asset_host.add("https://cdn.example.com/app.js", b"x")

        await resolver.resolve("assets/app.js")

        assert asset_host.requested == ["https://cdn.example.com/app.js"]


class TestLoadRemoteConfig:
    def test_valid_config(self, write_remote_config):
        path = write_remote_config({"assetBaseUrl": "https://cdn.example.com", "extra": True})

        assert load_remote_config(path).assetBaseUrl == "https://cdn.example.com"

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            "[]",
            "{}",
            '{"assetBaseUrl": ""}',
            '{"assetBaseUrl": "   "}',
            '{"assetBaseUrl": null}',
        ],
    )
    def test_malformed_config(self, write_remote_config, raw):
        path = write_remote_config(raw=raw)

        with pytest.raises(MalformedRemoteConfig) as exc_info:
            load_remote_config(path)

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_malformed_config_fails_the_request(self, resolver, asset_host, write_remote_config):
        write_remote_config(raw="{}")

        with pytest.raises(MalformedRemoteConfig):
            await resolver.resolve("assets/app.js")

        assert asset_host.requested == []

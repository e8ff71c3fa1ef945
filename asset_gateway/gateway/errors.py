from typing import Optional


class GatewayError(Exception):
    """Base error for the asset gateway, carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(GatewayError):
    """The deployment is broken (no compiled assets); not recoverable per request."""

    status_code = 500


class MalformedRemoteConfig(GatewayError):
    status_code = 500


class AccessDenied(GatewayError):
    """The request comes from an excluded security zone.

    Reported exactly like a missing page so the zone rules stay hidden.
    """

    status_code = 404

    def __init__(self, zone: str):
        super().__init__("Not Found")
        self.zone = zone


class AssetNotFound(GatewayError):
    status_code = 404

    def __init__(self, detail: str = "Not Found"):
        super().__init__(detail)


class UpstreamError(GatewayError):
    """The remote asset host answered outside [200, 400) or could not be reached."""

    def __init__(self, status_code: int, body: str, url: Optional[str] = None):
        super().__init__(body, status_code=status_code)
        self.url = url

import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "spa-asset-gateway")

PUBLIC_ROOT = os.getenv("PUBLIC_ROOT", "public")
ASSETS_PREFIX = os.getenv("ASSETS_PREFIX", "/assets")
# Security zones whose requests are answered with a plain 404
EXCLUDED_ZONES = [z.strip() for z in os.getenv("EXCLUDED_ZONES", "").split(",") if z.strip()]

REMOTE_ASSETS_TIMEOUT = float(os.getenv("REMOTE_ASSETS_TIMEOUT", "10"))
# The remote asset host is an internal one, so certificates are not checked unless asked for
REMOTE_ASSETS_VERIFY_TLS = (
    os.getenv("REMOTE_ASSETS_VERIFY_TLS", "false").lower() == "true"
)

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")


def _parse_security_zones(raw: str) -> list:
    """Parse ``name=regex;name=regex`` into an ordered list of (name, regex)."""
    zones: list = []
    if not raw:
        return zones
    for entry in raw.split(";"):
        entry = entry.strip()
        if not entry:
            continue
        if "=" in entry:
            name, pattern = entry.split("=", 1)
            name = name.strip()
            pattern = pattern.strip()
            if name and pattern:
                zones.append((name, pattern))
    return zones


SECURITY_ZONES = _parse_security_zones(os.getenv("SECURITY_ZONES", ""))

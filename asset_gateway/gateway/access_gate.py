import logging
import re
from enum import Enum
from typing import Iterable, List, Optional, Pattern, Protocol, Tuple

from fastapi import Request

from asset_gateway.gateway.errors import AccessDenied

logger = logging.getLogger("uvicorn.error")


class AccessDecision(str, Enum):
    ALLOW = "allow"
    REJECT = "reject"


class ZoneResolver(Protocol):
    def zone_of(self, request: Request) -> Optional[str]: ...


class FirewallZoneResolver:
    """
    Resolve the security zone of a request from an ordered list of path rules.

    The first rule whose pattern matches the beginning of the request path
    names the zone; requests matching no rule have no zone.
    """

    def __init__(self, rules: Iterable[Tuple[str, str]] = ()):
        self.rules: List[Tuple[str, Pattern]] = [
            (name, re.compile(pattern)) for name, pattern in rules
        ]

    def zone_of(self, request: Request) -> Optional[str]:
        return self.zone_for_path(request.url.path)

    def zone_for_path(self, path: str) -> Optional[str]:
        for name, pattern in self.rules:
            if pattern.match(path):
                return name
        return None


class AccessGate:
    def __init__(self, excluded_zones: Iterable[str] = ()):
        self.excluded_zones = frozenset(excluded_zones)

    def evaluate(self, zone: Optional[str]) -> AccessDecision:
        if zone is not None and zone in self.excluded_zones:
            return AccessDecision.REJECT
        return AccessDecision.ALLOW

    def enforce(self, zone: Optional[str]) -> None:
        """Raise AccessDenied when ``zone`` must not be served."""
        if self.evaluate(zone) is AccessDecision.REJECT:
            logger.info(f"[AccessGate] Rejecting request from excluded zone {zone}")
            raise AccessDenied(zone)

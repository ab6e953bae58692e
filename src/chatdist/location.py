"""
Best-effort IP geolocation used to order download mirrors.
"""

import ipaddress
import threading
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import requests

from chatdist.constants import (
    IP_API_FIELDS,
    IP_API_URL,
    LOCATION_CACHE_MAX_ENTRIES,
    LOCATION_CACHE_TTL_SECONDS,
    LOCATION_LOOKUP_TIMEOUT,
)
from chatdist.log_utils import logger
from chatdist.utils import make_api_request


@dataclass
class LocationInfo:
    country: str
    countryCode: str = ""
    region: str = ""
    regionCode: str = ""
    isMainlandChina: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def is_local_or_reserved_ip(ip: Optional[str]) -> bool:
    """
    Return True for loopback, private, link-local and "localhost" addresses.
    """
    if not ip:
        return False
    if ip.strip().lower() == "localhost":
        return True
    try:
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return False
    return address.is_loopback or address.is_private or address.is_link_local


def get_client_ip(headers: Mapping[str, str], peer: Optional[str] = None) -> Optional[str]:
    """
    Pick the client address: first X-Forwarded-For entry, then X-Real-IP, then the socket peer.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    return peer or None


def detect_location(ip: Optional[str]) -> LocationInfo:
    """
    Look up the country of an IP address through ip-api.com.

    Local and private addresses short-circuit without a network call, and so
    does a missing address (ip-api would otherwise locate the server itself).
    Any lookup failure yields country "Unknown"; this function never raises.
    """
    if not ip or not ip.strip():
        logger.debug("No client IP available, skipping geolocation")
        return LocationInfo(country="Unknown")

    if is_local_or_reserved_ip(ip):
        logger.debug(f"Skipping geolocation for local/reserved IP: {ip}")
        return LocationInfo(country="Local")

    url = f"{IP_API_URL}{ip.strip()}"
    try:
        response = make_api_request(
            url,
            params={"fields": IP_API_FIELDS},
            timeout=LOCATION_LOOKUP_TIMEOUT,
        )
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"IP geolocation lookup failed: {e}")
        return LocationInfo(country="Unknown")

    if not isinstance(data, dict) or data.get("status") != "success":
        message = data.get("message") if isinstance(data, dict) else None
        if message in ("reserved range", "private range"):
            logger.debug(f"IP geolocation skipped for reserved/private IP: {ip}")
        else:
            logger.warning(f"IP geolocation API returned error: {message or 'Unknown error'}")
        return LocationInfo(country="Unknown")

    country_code = data.get("countryCode") or ""
    return LocationInfo(
        country=data.get("country") or "",
        countryCode=country_code,
        region=data.get("regionName") or "",
        regionCode=data.get("region") or "",
        # HK, MO and TW have their own country codes
        isMainlandChina=country_code == "CN",
    )


class LocationCache:
    """
    In-memory, per-IP cache of lookup results with an expiry age.

    The oldest entry is evicted once `max_entries` is reached. Failed lookups
    are cached too, so a rate-limited API is not hit again on every page view.
    """

    def __init__(
        self,
        ttl_seconds: float = LOCATION_CACHE_TTL_SECONDS,
        max_entries: int = LOCATION_CACHE_MAX_ENTRIES,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Tuple[float, LocationInfo]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_lookup(
        self,
        ip: Optional[str],
        lookup: Callable[[Optional[str]], LocationInfo] = detect_location,
    ) -> LocationInfo:
        if not ip:
            return lookup(ip)

        now = time.monotonic()
        with self._lock:
            cached = self._entries.get(ip)
            if cached is not None:
                age_s = now - cached[0]
                if age_s < self.ttl_seconds:
                    logger.debug(f"Using cached location for {ip} (age {age_s:.0f}s)")
                    return cached[1]
                del self._entries[ip]

        # Not under the lock; concurrent misses for one IP may both look up
        info = lookup(ip)

        with self._lock:
            self._entries[ip] = (time.monotonic(), info)
            self._entries.move_to_end(ip)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return info

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

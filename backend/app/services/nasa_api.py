"""
NASA Open API gateway

One coroutine per upstream category:
- DONKI space weather events (FLR, CME, GST, HSS, IPS, RBE, SEP, WSA-Enlil,
  CME analysis, notifications, MPC)
- NeoWs near-Earth object feed and lookup
- APOD (Astronomy Picture of the Day)

DONKI-style calls share one date-window rule: explicit dates win, otherwise
the window ends today (UTC) and starts `days` earlier.
"""

import json
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import httpx

from app.core.config import settings
from app.core.errors import MissingDateRangeError, UnknownEventTypeError, UpstreamParseError
from app.services.http_fetch import fetch_with_retry

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def resolve_date_window(
    days: int,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> Tuple[str, str]:
    """Return (startDate, endDate) as YYYY-MM-DD strings."""
    end = end_date or utc_today().strftime(DATE_FORMAT)
    if start_date:
        return start_date, end
    end_day = datetime.strptime(end[:10], DATE_FORMAT).date()
    return (end_day - timedelta(days=days)).strftime(DATE_FORMAT), end


class NasaClient:
    """
    Gateway to api.nasa.gov.

    Usage:
        async with httpx.AsyncClient() as http:
            nasa = NasaClient(http_client=http)
            flares = await nasa.get_flares(days=2)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        retries: Optional[int] = None,
        backoff_base_ms: Optional[int] = None,
        timeout_ms: Optional[int] = None,
    ):
        self.api_key = api_key or settings.NASA_KEY
        self.base_url = (base_url or settings.NASA_BASE_URL).rstrip("/")
        self.http_client = http_client
        self.retries = settings.NASA_RETRIES if retries is None else retries
        self.backoff_base_ms = settings.NASA_BACKOFF_MS if backoff_base_ms is None else backoff_base_ms
        self.timeout_ms = timeout_ms

    @property
    def donki_url(self) -> str:
        return f"{self.base_url}/DONKI"

    @property
    def neo_url(self) -> str:
        return f"{self.base_url}/neo/rest/v1"

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await fetch_with_retry(
            url,
            params={"api_key": self.api_key, **(params or {})},
            timeout_ms=self.timeout_ms,
            retries=self.retries,
            backoff_base_ms=self.backoff_base_ms,
            client=self.http_client,
        )
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Malformed JSON from {url}: {e}")
            raise UpstreamParseError(f"Invalid JSON from {url}: {e}", url=url) from e

    async def _donki_window(
        self,
        endpoint: str,
        days: int,
        start_date: Optional[str],
        end_date: Optional[str],
    ) -> Any:
        start, end = resolve_date_window(days, start_date, end_date)
        return await self.get_json(
            f"{self.donki_url}/{endpoint}", {"startDate": start, "endDate": end}
        )

    # ── DONKI ────────────────────────────────────────────────────────────

    async def get_flares(self, days: int = 2, start_date: Optional[str] = None, end_date: Optional[str] = None):
        return await self._donki_window("FLR", days, start_date, end_date)

    async def get_cmes(self, days: int = 3, start_date: Optional[str] = None, end_date: Optional[str] = None):
        return await self._donki_window("CME", days, start_date, end_date)

    async def get_geomagnetic_storms(self, days: int = 5, start_date: Optional[str] = None, end_date: Optional[str] = None):
        return await self._donki_window("GST", days, start_date, end_date)

    async def get_hss(self, days: int = 5, start_date: Optional[str] = None, end_date: Optional[str] = None):
        return await self._donki_window("HSS", days, start_date, end_date)

    async def get_ips(self, days: int = 5, start_date: Optional[str] = None, end_date: Optional[str] = None):
        return await self._donki_window("IPS", days, start_date, end_date)

    async def get_rbe(self, days: int = 5, start_date: Optional[str] = None, end_date: Optional[str] = None):
        return await self._donki_window("RBE", days, start_date, end_date)

    async def get_sep(self, days: int = 5, start_date: Optional[str] = None, end_date: Optional[str] = None):
        return await self._donki_window("SEP", days, start_date, end_date)

    async def get_wsa_enlil(self, days: int = 7, start_date: Optional[str] = None, end_date: Optional[str] = None):
        return await self._donki_window("WSAEnlilSimulations", days, start_date, end_date)

    async def get_cme_analysis(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        most_accurate_only: bool = False,
        speed: Optional[str] = None,
        half_angle: Optional[str] = None,
        catalog: Optional[str] = None,
    ):
        if not start_date or not end_date:
            raise MissingDateRangeError()
        params: Dict[str, Any] = {"startDate": start_date, "endDate": end_date}
        if most_accurate_only:
            params["mostAccurateOnly"] = "true"
        if speed:
            params["speed"] = speed
        if half_angle:
            params["halfAngle"] = half_angle
        if catalog:
            params["catalog"] = catalog
        return await self.get_json(f"{self.donki_url}/CMEAnalysis", params)

    async def get_notifications(self, start_date: Optional[str] = None, end_date: Optional[str] = None, type: str = "all"):
        if not start_date or not end_date:
            raise MissingDateRangeError()
        return await self.get_json(
            f"{self.donki_url}/notifications",
            {"startDate": start_date, "endDate": end_date, "type": type},
        )

    async def get_mpc(self, start_date: Optional[str] = None, end_date: Optional[str] = None):
        if not start_date or not end_date:
            raise MissingDateRangeError()
        return await self.get_json(
            f"{self.donki_url}/MPC", {"startDate": start_date, "endDate": end_date}
        )

    async def fetch_category(self, category: str, days: int):
        """Dispatch a canonical analytics category (see donki_analytics.normalize_event_type)."""
        fetchers = {
            "flares": self.get_flares,
            "cmes": self.get_cmes,
            "geomagneticstorms": self.get_geomagnetic_storms,
            "hss": self.get_hss,
            "ips": self.get_ips,
            "rbe": self.get_rbe,
            "sep": self.get_sep,
        }
        fetcher = fetchers.get(category)
        if fetcher is None:
            raise UnknownEventTypeError(category)
        return await fetcher(days=days)

    # ── NeoWs ────────────────────────────────────────────────────────────

    async def get_neo_feed(self, start_date: Optional[str] = None, end_date: Optional[str] = None):
        start, end = resolve_date_window(7, start_date, end_date)
        return await self.get_json(f"{self.neo_url}/feed", {"start_date": start, "end_date": end})

    async def get_neo_today(self):
        return await self.get_json(f"{self.neo_url}/feed/today", {"detailed": "true"})

    async def get_neo_lookup(self, neo_id: str):
        return await self.get_json(f"{self.neo_url}/neo/{neo_id}")

    # ── APOD ─────────────────────────────────────────────────────────────

    async def get_apod(self, date: Optional[str] = None, hd: bool = False):
        """Without a date NASA answers with today's picture. Thumbnails are always requested for videos."""
        params: Dict[str, Any] = {}
        if date:
            params["date"] = date
        params["thumbs"] = "true"
        if hd:
            params["hd"] = "true"
        return await self.get_json(f"{self.base_url}/planetary/apod", params)

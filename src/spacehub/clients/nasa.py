"""NASA upstreams: OSDR dataset catalog, APOD, NeoWs and DONKI."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from spacehub.clients.base import HttpFetchClient
from spacehub.errors import DeserializationError
from spacehub.settings import Settings

logger = logging.getLogger(__name__)


class NasaKeyedClient(HttpFetchClient):
    def __init__(self, url: str, *, api_key: str = "DEMO_KEY", **kwargs: Any) -> None:
        super().__init__(url, **kwargs)
        self.api_key = api_key

    def default_params(self) -> Dict[str, Any]:
        return {"api_key": self.api_key}

    def build_params(self, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return {**self.default_params(), **(params or {})}


class OsdrClient(NasaKeyedClient):
    """OSDR datasets list; returns the list of item documents."""

    name = "osdr"

    def extract(self, payload: Any) -> List[Any]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            results = payload.get("results")
            if isinstance(results, list):
                return results
            if results is None:
                logger.warning("osdr: response has no 'results' array, treating as empty")
                return []
        raise DeserializationError(f"osdr: unexpected payload type {type(payload).__name__}")


class ApodClient(NasaKeyedClient):
    name = "apod"

    def default_params(self) -> Dict[str, Any]:
        return {"api_key": self.api_key, "thumbs": "true"}


class NeoFeedClient(NasaKeyedClient):
    """NeoWs feed for the last ``days_back`` days."""

    name = "neo"

    def __init__(self, url: str, *, days_back: int = 2, **kwargs: Any) -> None:
        super().__init__(url, **kwargs)
        self.days_back = days_back

    def default_params(self) -> Dict[str, Any]:
        end = date.today()
        start = end - timedelta(days=self.days_back)
        return {"api_key": self.api_key, "start_date": start.isoformat(), "end_date": end.isoformat()}


class DonkiClient(NasaKeyedClient):
    """DONKI event list; ``kind`` is FLR (solar flares) or CME."""

    def __init__(self, url: str, *, kind: str, days_back: int = 5, **kwargs: Any) -> None:
        super().__init__(url, **kwargs)
        self.kind = kind.upper()
        self.name = self.kind.lower()
        self.days_back = days_back

    def default_params(self) -> Dict[str, Any]:
        end = date.today()
        start = end - timedelta(days=self.days_back)
        return {"api_key": self.api_key, "startDate": start.isoformat(), "endDate": end.isoformat()}


def build_nasa_clients(settings: Settings) -> Dict[str, HttpFetchClient]:
    base = settings.nasa_api_base.rstrip("/")
    common = {
        "api_key": settings.nasa_api_key,
        "timeout": settings.http_timeout,
        "max_retries": settings.http_max_retries,
        "retry_delay": settings.http_retry_delay,
        "proxy_url": settings.http_proxy,
    }
    return {
        "osdr": OsdrClient(settings.nasa_api_url, **common),
        "apod": ApodClient(f"{base}/planetary/apod", **common),
        "neo": NeoFeedClient(f"{base}/neo/rest/v1/feed", **common),
        "flr": DonkiClient(f"{base}/DONKI/FLR", kind="FLR", **common),
        "cme": DonkiClient(f"{base}/DONKI/CME", kind="CME", **common),
    }

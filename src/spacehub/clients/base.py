import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from spacehub.contracts import FetchClient
from spacehub.errors import AppError, DeserializationError, UpstreamError
from spacehub.settings import Settings

logger = logging.getLogger(__name__)


def make_async_client(
    *,
    timeout: float,
    proxy_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    kwargs: Dict[str, Any] = {
        "timeout": httpx.Timeout(timeout),
        "follow_redirects": True,
        "headers": {"Accept": "application/json"},
    }
    if transport is not None:
        kwargs["transport"] = transport
    if proxy_url:
        kwargs["proxy"] = proxy_url
    return httpx.AsyncClient(**kwargs)


class HttpFetchClient(FetchClient):
    """GET one JSON document from an upstream API.

    Network errors, 429 and 5xx are retried up to ``max_retries`` attempts with
    exponential backoff (``retry_delay * 2**attempt``, or Retry-After on 429).
    Other 4xx responses fail immediately.
    """

    name = "upstream"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 20.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        proxy_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        name: Optional[str] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.proxy_url = proxy_url
        self.transport = transport
        if name:
            self.name = name

    @classmethod
    def from_settings(cls, settings: Settings, url: str, **kwargs: Any) -> "HttpFetchClient":
        return cls(
            url,
            timeout=settings.http_timeout,
            max_retries=settings.http_max_retries,
            retry_delay=settings.http_retry_delay,
            proxy_url=settings.http_proxy,
            **kwargs,
        )

    def build_params(self, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return dict(params or {})

    async def _request(self, client: httpx.AsyncClient, params: Dict[str, Any]) -> httpx.Response:
        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            delay = self.retry_delay * (2**attempt)
            try:
                response = await client.get(self.url, params=params or None)
            except httpx.HTTPError as exc:
                if last_attempt:
                    raise UpstreamError(
                        f"{self.name}: request failed after {self.max_retries} attempts: "
                        f"{type(exc).__name__}: {exc}",
                        api_name=self.name,
                    ) from exc
                logger.warning(
                    "%s: %s, retrying in %ss (attempt %s/%s)",
                    self.name, type(exc).__name__, delay, attempt + 1, self.max_retries,
                )
                await asyncio.sleep(delay)
                continue

            status = response.status_code
            if status < 400:
                return response

            retryable = status == 429 or status >= 500
            if not retryable or last_attempt:
                raise UpstreamError(
                    f"{self.name}: HTTP {status} from {self.url}",
                    api_name=self.name,
                    http_status=status,
                )

            if status == 429:
                try:
                    delay = float(response.headers.get("Retry-After"))
                except (TypeError, ValueError):
                    pass
            logger.warning(
                "%s: HTTP %s, retrying in %ss (attempt %s/%s)",
                self.name, status, delay, attempt + 1, self.max_retries,
            )
            await asyncio.sleep(delay)

        raise UpstreamError(f"{self.name}: no response", api_name=self.name)

    async def fetch(self, params: Optional[Dict[str, Any]] = None) -> Any:
        request_params = self.build_params(params)
        try:
            async with make_async_client(
                timeout=self.timeout, proxy_url=self.proxy_url, transport=self.transport
            ) as client:
                response = await self._request(client, request_params)
        except AppError:
            raise
        except Exception as exc:
            # Misconfiguration (bad URL, bad proxy) surfaces as a typed upstream failure
            raise UpstreamError(
                f"{self.name}: request to {self.url} failed: {type(exc).__name__}: {exc}",
                api_name=self.name,
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise DeserializationError(f"{self.name}: response is not valid JSON: {exc}") from exc

        logger.info("%s: HTTP %s len=%s", self.name, response.status_code, len(response.content or b""))
        return self.extract(payload)

    def extract(self, payload: Any) -> Any:
        """Hook for clients that only keep part of the upstream document."""
        return payload

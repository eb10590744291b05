"""
ScrapingBee page fetcher with retry logic.
"""
import logging
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import ScrapingBeeConfig, get_config
from ..exceptions import SourceError

logger = logging.getLogger(__name__)


class ScrapingBeeFetcher:
    """
    Fetches rendered marketplace pages through the ScrapingBee proxy.
    Transport errors are retried; HTTP error statuses are not.
    """

    def __init__(
        self,
        config: Optional[ScrapingBeeConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_config().scrapingbee
        # Tests inject an httpx.MockTransport here
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    async def fetch_html(
        self,
        url: str,
        *,
        render_js: bool = False,
        wait_ms: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        source: str = "scrapingbee",
    ) -> str:
        """
        Fetch one page and return its HTML.

        Raises:
            SourceError: If ScrapingBee is not configured or answers with an error status
        """
        if not self.is_configured:
            raise SourceError("ScrapingBee API key not configured", source=source)

        params = {
            "api_key": self.config.api_key,
            "url": url,
            "render_js": "true" if render_js else "false",
            "premium_proxy": "true",
            "country_code": self.config.country_code,
        }
        if wait_ms:
            params["wait"] = str(wait_ms)

        timeout = timeout_seconds or self.config.request_timeout_seconds
        logger.info(f"ScrapingBee request for {source}: {url}")

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=lambda retry_state: logger.warning(
                f"Retry attempt {retry_state.attempt_number} for {source}"
            ),
            reraise=True,
        ):
            with attempt:
                async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                    response = await client.get(self.config.base_url, params=params)

        if response.status_code >= 400:
            raise SourceError(
                f"{source} page request failed with HTTP {response.status_code}",
                source=source,
                status_code=response.status_code,
                detail={"url": url},
            )
        return response.text

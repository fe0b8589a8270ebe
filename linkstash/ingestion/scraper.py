"""Client for the upstream scrape/extraction service."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import UpstreamError

logger = logging.getLogger(__name__)


class ScraperClient:
    """Forward URLs to the scrape service and return its raw records."""

    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        parser: str = "jsdom",
        return_format: str = "json",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize scraper client.

        Args:
            base_url: Scraper base URL; requests go to ``{base_url}/api``
            api_key: Bearer token sent upstream
            timeout: Request timeout in seconds
            parser: Parser name requested from the scraper
            return_format: Return format requested from the scraper
            transport: Custom httpx transport (for testing)
        """
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.timeout = timeout
        self.parser = parser
        self.return_format = return_format
        self.transport = transport

    @classmethod
    def from_config(cls, scraper_config: Dict[str, Any]) -> "ScraperClient":
        return cls(
            base_url=scraper_config.get("base_url"),
            api_key=scraper_config.get("api_key"),
            timeout=scraper_config.get("timeout", 60.0),
            parser=scraper_config.get("parser", "jsdom"),
            return_format=scraper_config.get("return_format", "json"),
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            headers=self._headers(),
            transport=self.transport,
        )

    def _require_base_url(self) -> str:
        if not self.base_url:
            logger.error("Scraper base URL is not configured")
            raise UpstreamError("Scraper URL not configured")
        return self.base_url

    def scrape(self, urls: List[str]) -> List[Any]:
        """
        Scrape a batch of URLs.

        Returns:
            The decoded JSON array; elements are not validated here

        Raises:
            UpstreamError: unreachable service, non-success status, or a
                response that is not a JSON array
        """
        base_url = self._require_base_url()
        payload = {
            "links": urls,
            "returnFormat": self.return_format,
            "parser": self.parser,
            "saveToDisk": False,
        }

        try:
            with self._client() as client:
                response = client.post(f"{base_url}/api", json=payload)
        except httpx.TimeoutException:
            logger.error("Scraper request timed out after %ss", self.timeout)
            raise UpstreamError("Upstream timed out")
        except httpx.HTTPError as e:
            logger.error("Scraper unreachable: %s", e)
            raise UpstreamError("Upstream unreachable", details={"details": str(e)})

        if response.is_error:
            text = response.text
            logger.error("Scraper returned error %s: %s", response.status_code, text)
            if response.status_code == 400:
                raise UpstreamError(
                    "Upstream rejected link: ensure you are sending a URL string",
                    details={"status": 400, "details": text},
                    status_code=400,
                )
            raise UpstreamError(
                "Upstream error",
                details={"status": response.status_code, "details": text},
            )

        try:
            data = response.json()
        except ValueError:
            logger.error("Scraper returned non-JSON body")
            raise UpstreamError("Invalid response from upstream")

        if not isinstance(data, list):
            logger.error("Unexpected response shape from scraper: %r", data)
            raise UpstreamError("Invalid response from upstream")

        return data

    def ping(self) -> Any:
        """Call the scraper's ``/ping`` endpoint and return its JSON."""
        base_url = self._require_base_url()
        try:
            with self._client() as client:
                response = client.get(f"{base_url}/ping")
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise UpstreamError(str(e) or "Upstream unreachable")
        except ValueError:
            raise UpstreamError("Invalid response from upstream")

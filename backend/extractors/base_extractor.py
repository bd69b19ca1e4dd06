"""
Base extractor class for job sources

This module provides the abstract base class that every source adapter
must implement. An adapter:

1. Declares NAME (source identifier stored on each job) and CONFIG_KEYS
   (settings that must be non-empty for the adapter to run; empty = keyless)
2. Implements fetch_jobs(), returning NormalizedJob objects
3. Raises on failure: the runner converts exceptions into an empty
   contribution plus an error message, so one source never affects another
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple
import httpx

from enrichment.rate_limiter import RateLimiter
from sourcing.models import NormalizedJob

DEFAULT_MAX_JOBS = 50


class BaseJobExtractor(ABC):
    """
    Abstract base class for job source adapters

    Each adapter must define:
    1. NAME: Source identifier (e.g., "remoteok")
    2. CONFIG_KEYS: Settings required to run (e.g., ("RAPIDAPI_KEY",))
    3. fetch_jobs(): Fetch and normalize postings

    Example:
        extractor = RemoteOKExtractor(settings=settings)
        jobs = await extractor.fetch_jobs()
    """

    NAME: str
    CONFIG_KEYS: Tuple[str, ...] = ()

    def __init__(
        self,
        settings: Any = None,
        client: Optional[httpx.AsyncClient] = None,
        limiter: Optional[RateLimiter] = None,
        max_jobs: int = DEFAULT_MAX_JOBS,
    ):
        """
        Initialize extractor

        Args:
            settings: Settings object holding API keys (see config.settings)
            client: Shared AsyncClient (a short-lived one is created per request if None)
            limiter: Rate limiter for sources with a known quota
            max_jobs: Per-source cap on returned jobs (where the source applies one)
        """
        if not hasattr(self.__class__, 'NAME'):
            raise NotImplementedError(
                f"{self.__class__.__name__} must define NAME class variable"
            )

        self.settings = settings
        self.client = client
        self.limiter = limiter
        self.max_jobs = max_jobs

    @abstractmethod
    async def fetch_jobs(self) -> List[NormalizedJob]:
        """
        Fetch all postings and return them normalized

        Implementation notes:
        - Handle pagination and per-source caps
        - Fill company, role and location on every job
        - Raise on failure (do not return an empty list to hide errors);
          multi-board adapters isolate failures per board instead

        Returns:
            List of NormalizedJob objects with source_name set to NAME
        """
        pass

    def setting(self, key: str) -> str:
        """Value of a settings key ("" when unset or no settings given)."""
        return getattr(self.settings, key, "") or ""

    def is_configured(self) -> bool:
        return all(self.setting(key) for key in self.CONFIG_KEYS)

    def get_headers(self) -> Dict[str, str]:
        """
        Get default HTTP headers for requests

        Override this method if a source needs specific headers.

        Returns:
            Dict of HTTP headers
        """
        return {
            'User-Agent': 'JobPipeline/1.0 (job-aggregator)',
            'Accept': 'application/json',
        }

    async def make_request(
        self,
        url: str,
        method: str = 'GET',
        params: Optional[Dict] = None,
        json: Optional[Dict] = None,
        headers: Optional[Dict] = None,
        auth: Optional[httpx.Auth] = None,
        timeout: float = 10.0
    ) -> httpx.Response:
        """
        Helper method to make HTTP requests with consistent error handling

        Args:
            url: URL to request
            method: HTTP method (GET, POST, etc.)
            params: Query parameters
            json: JSON body (for POST requests)
            headers: Additional headers (merged with default headers)
            auth: httpx auth (e.g. BasicAuth)
            timeout: Request timeout in seconds

        Returns:
            httpx.Response object

        Raises:
            httpx.HTTPStatusError: On HTTP error responses
            httpx.TimeoutException: On request timeout
            httpx.ConnectError: On connection failure
        """
        request_headers = self.get_headers()
        if headers:
            request_headers.update(headers)

        async def send(client: httpx.AsyncClient) -> httpx.Response:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                json=json,
                headers=request_headers,
                auth=auth,
                timeout=timeout,
                follow_redirects=True,
            )
            response.raise_for_status()
            return response

        async def attempt() -> httpx.Response:
            if self.client is not None:
                return await send(self.client)
            async with httpx.AsyncClient() as client:
                return await send(client)

        if self.limiter is not None:
            return await self.limiter.with_retry(attempt)
        return await attempt()

    async def get_json(self, url: str, **kwargs) -> Any:
        """GET a URL and decode its JSON body."""
        response = await self.make_request(url, **kwargs)
        return response.json()

    def build_job(self, **fields) -> NormalizedJob:
        """Create a NormalizedJob tagged with this source's NAME."""
        fields.setdefault('source_name', self.NAME)
        return NormalizedJob(**fields)

    def __repr__(self) -> str:
        """String representation of extractor"""
        return f"{self.__class__.__name__}(name={self.NAME}, configured={self.is_configured()})"

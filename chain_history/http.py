"""
JSON HTTP client over aiohttp.

Maps transport failures into the chain history error taxonomy:
- timeout / connection failure -> NetworkError
- HTTP 429                     -> RateLimitError (Retry-After in seconds)
- any other status >= 400      -> ProviderError(status_code)
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from chain_history.exceptions import NetworkError, ProviderError, RateLimitError
from chain_history.logging_utils import mask_params


logger = logging.getLogger(__name__)


class JsonHttpClient:
    """
    Thin request helper owning (or borrowing) an aiohttp session.

    A session passed in by the caller is never closed here.
    """

    USER_AGENT = "chain-history/1.0"

    def __init__(
        self,
        name: str,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.name = name
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._logger = logger or logging.getLogger(__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.USER_AGENT,
                },
            )
            self._owns_session = True
        return self._session

    async def request_json(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Issue one request and return the decoded body.

        Bodies that are not valid JSON are returned as text.

        Raises:
            NetworkError: on timeout or connection failure
            RateLimitError: on HTTP 429
            ProviderError: on any other HTTP status >= 400
        """
        session = await self._get_session()
        self._logger.debug(
            f"[{self.name}] {method} {url} params={mask_params(params)}"
        )

        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status == 429:
                    raise RateLimitError(
                        f"{self.name} rate limit exceeded (HTTP 429)",
                        retry_after=_parse_retry_after(response.headers.get("Retry-After")),
                        context={"url": url},
                    )

                if response.status >= 400:
                    body = await response.text()
                    raise ProviderError(
                        f"HTTP {response.status}: {body[:200]}",
                        provider=self.name,
                        status_code=response.status,
                        context={"url": url},
                    )

                text = await response.text()
                try:
                    return await response.json(content_type=None)
                except ValueError:
                    return text

        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"{self.name} request timed out after {self.timeout}s",
                context={"url": url, "timeout": self.timeout},
                original_error=e,
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(
                f"{self.name} connection error: {e}",
                context={"url": url},
                original_error=e,
            ) from e

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None

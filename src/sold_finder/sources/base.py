"""Base source interface.

A source wraps one upstream registry. Every fetch goes through
``BaseSource._run``, which bounds it with a timeout and turns any failure
into an empty ``FetchResult`` so callers only ever see "zero or more
records".
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from sold_finder.errors import (
    MalformedUpstreamPayloadError,
    SourceError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from sold_finder.logging import get_logger
from sold_finder.models import FetchResult, RecordT

logger = get_logger(__name__)

USER_AGENT = "sold-finder/0.1"


class BaseSource(ABC):
    """Abstract base class for upstream record sources."""

    def __init__(self, *, client: httpx.AsyncClient | None = None) -> None:
        """Initialize the source.

        Args:
            client: Shared HTTP client. When omitted, each fetch opens and
                closes its own client.
        """
        self._client = client

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs and errors."""
        ...

    async def _run(
        self,
        fetch: str,
        call: Callable[[], Awaitable[list[RecordT]]],
        *,
        timeout: float,
        **context: Any,
    ) -> FetchResult[RecordT]:
        """Run one upstream call under a time budget, never raising.

        Args:
            fetch: Label for this fetch (e.g. "exact", "sector").
            call: Coroutine factory performing the request and parsing.
            timeout: Total seconds allowed for the call.
            **context: Extra fields for the log lines.
        """
        error: SourceError
        try:
            async with asyncio.timeout(timeout):
                records = await call()
        except TimeoutError:
            error = UpstreamTimeoutError(self.name, f"no response within {timeout}s")
        except httpx.TimeoutException as e:
            error = UpstreamTimeoutError(self.name, str(e) or type(e).__name__)
        except httpx.HTTPError as e:
            error = UpstreamUnavailableError(self.name, str(e) or type(e).__name__)
        except SourceError as e:
            error = e
        except Exception as e:
            logger.error(
                "source_fetch_crashed", source=self.name, fetch=fetch, exc_info=True, **context
            )
            error = SourceError(self.name, f"unexpected {type(e).__name__}: {e}")
        else:
            logger.info(
                "source_fetch_complete",
                source=self.name,
                fetch=fetch,
                count=len(records),
                **context,
            )
            return FetchResult(records=records)

        logger.warning(
            "source_fetch_failed",
            source=self.name,
            fetch=fetch,
            error_type=type(error).__name__,
            error=error.message,
            **context,
        )
        return FetchResult(error=error)

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, str],
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """GET a URL and decode its JSON body.

        An empty 2xx body decodes to None. ``timeout`` applies to each phase
        of the request (connect, read, write, pool); None disables the
        client-side limit.

        Raises:
            UpstreamUnavailableError: On a non-2xx status.
            MalformedUpstreamPayloadError: If the body is not JSON.
            httpx.HTTPError: On transport failures.
        """
        request_headers = {"User-Agent": USER_AGENT, **(headers or {})}
        if self._client is not None:
            response = await self._client.get(
                url, params=params, headers=request_headers, timeout=timeout
            )
        else:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.get(url, params=params, headers=request_headers)

        if not response.is_success:
            raise UpstreamUnavailableError(self.name, f"HTTP {response.status_code}")

        if not response.content.strip():
            return None

        try:
            return response.json()
        except ValueError as e:
            raise MalformedUpstreamPayloadError(self.name, f"invalid JSON: {e}") from e

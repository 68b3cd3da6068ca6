"""Async client for the TibiaData v4 character endpoint."""

from __future__ import annotations

import asyncio
import json
import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from models.tibia import CharacterResponse
from utils.config import get_config
from utils.exceptions import (
    CharacterNotFoundError,
    DecodingError,
    ServerError,
    TibiaConnectionError,
)
from utils.metrics import MetricsCollector, get_metrics

logger = logging.getLogger(__name__)

# Constants
DEFAULT_BASE_URL = "https://api.tibiadata.com/v4"
HTTP_TIMEOUT = 15.0
RESOURCE_TIMEOUT = 30.0
HTTP_STATUS_NOT_FOUND = 404


def character_url(base_url: str, name: str) -> str:
    """Build the character endpoint URL with the name percent-encoded."""
    return f"{base_url.rstrip('/')}/character/{quote(name, safe='')}"


def _field_path(error: ValidationError) -> str:
    """Dotted location of the first validation error (e.g. character.character.level)."""
    details = error.errors()
    if not details:
        return "<root>"
    return ".".join(str(part) for part in details[0]["loc"]) or "<root>"


class TibiaDataClient:
    """Fetches and parses character pages from TibiaData.

    Example:
        ```python
        client = TibiaDataClient()
        response = await client.get_character("Gandalf")
        print(response.character.character.level)
        await client.close()
        ```

    Every failure is raised as a ``CharacterLookupError`` subclass; requests
    are never retried.
    """

    def __init__(
        self,
        base_url: str | None = None,
        request_timeout: float | None = None,
        resource_timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL. Falls back to config.
            request_timeout: Connect/read timeout in seconds. Falls back to config.
            resource_timeout: Overall timeout per request in seconds. Falls back to config.
            user_agent: User-Agent header. Falls back to config.
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests).
            metrics: Metrics collector for request timings.
        """
        config = get_config()
        self.base_url = base_url or config.tibiadata.base_url
        self.request_timeout = request_timeout or config.tibiadata.request_timeout
        self.resource_timeout = resource_timeout or config.tibiadata.resource_timeout
        self.user_agent = user_agent or config.app.computed_user_agent
        self._transport = transport
        self._metrics = metrics or get_metrics()
        self._http_client: httpx.AsyncClient | None = None

    def _initialize_http_client(self) -> None:
        """Initialize HTTP client with default headers."""
        if self._http_client is not None:
            return
        self._http_client = httpx.AsyncClient(
            timeout=self.request_timeout,
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            transport=self._transport,
        )

    async def get_character(self, name: str) -> CharacterResponse:
        """Fetch and parse one character.

        Args:
            name: Character name (already validated and trimmed)

        Returns:
            Parsed character response

        Raises:
            CharacterNotFoundError: HTTP 404, or a 404 reported in the body
            ServerError: Any other non-2xx status
            DecodingError: Body is not JSON or does not match the schema
            TibiaConnectionError: Transport failure or timeout
        """
        self._initialize_http_client()
        assert self._http_client is not None

        url = character_url(self.base_url, name)
        logger.debug("GET %s", url)
        try:
            with self._metrics.time_operation("tibiadata.get_character"):
                response = await asyncio.wait_for(
                    self._http_client.get(url), timeout=self.resource_timeout
                )
        except TimeoutError as e:
            logger.warning("Request for %s exceeded %.0fs", name, self.resource_timeout)
            raise TibiaConnectionError("The request timed out") from e
        except httpx.TimeoutException as e:
            logger.warning("Request for %s timed out: %s", name, e)
            raise TibiaConnectionError("The request timed out") from e
        except httpx.RequestError as e:
            logger.warning("Request for %s failed: %s", name, e)
            raise TibiaConnectionError(str(e) or type(e).__name__) from e

        if response.status_code == HTTP_STATUS_NOT_FOUND:
            logger.info("Character %s not found", name)
            raise CharacterNotFoundError(name)
        if not response.is_success:
            logger.error(
                "TibiaData returned status %d for %s", response.status_code, name
            )
            raise ServerError(response.status_code)

        return self._parse(name, response)

    def _parse(self, name: str, response: httpx.Response) -> CharacterResponse:
        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error("Response for %s is not valid JSON: %s", name, e)
            raise DecodingError("<root>", "response is not valid JSON") from e

        # Some API versions answer unknown names with a 2xx and an error status
        info = payload.get("information") if isinstance(payload, dict) else None
        status = info.get("status") if isinstance(info, dict) else None
        if isinstance(status, dict) and status.get("http_code") == HTTP_STATUS_NOT_FOUND:
            logger.info("Character %s not found (reported in body)", name)
            raise CharacterNotFoundError(name)

        try:
            return CharacterResponse.model_validate(payload)
        except ValidationError as e:
            path = _field_path(e)
            logger.error("Failed to decode character %s at %s: %s", name, path, e)
            raise DecodingError(path, e.errors()[0]["msg"]) from e

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
